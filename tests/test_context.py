"""Tests for context assembly and prompt rendering."""
import pytest

from careerai.models.chat import ChatTurn, Attachment
from careerai.services.context_assembler import (
    assemble_context, render_history, render_file_context, gateway_file_refs,
)
from careerai.services.prompt_composer import render_prompt, sanitize, SECTION_HEADINGS, SLOT_FILE_CONTEXT


def _file(stored_name, original_name, size_bytes=1024, kind=".pdf"):
    return Attachment(
        stored_name=stored_name, original_name=original_name, kind=kind,
        storage_path=f"/uploads/chat-files/{stored_name}", size_bytes=size_bytes,
        mime_type="application/pdf",
    )


@pytest.mark.asyncio
async def test_assemble_context_windows_turns_but_not_files(session):
    session.add(ChatTurn(user_id=1, role="user", text="t0", has_attachments=True,
                         attachments=[_file("a.pdf", "a.pdf")]))
    for i in range(1, 5):
        session.add(ChatTurn(user_id=1, role="user", text=f"t{i}", attachments=[]))
    session.add(ChatTurn(user_id=2, role="user", text="other", attachments=[_file("z.pdf", "z.pdf")]))
    await session.commit()

    context = await assemble_context(session, user_id=1, window=2)

    assert [t.text for t in context.turns] == ["t3", "t4"]
    assert [a.stored_name for a in context.all_files] == ["a.pdf"]


@pytest.mark.asyncio
async def test_assemble_context_for_unknown_user_is_empty(session):
    context = await assemble_context(session, user_id=99, window=20)
    assert context.is_empty
    assert context.all_files == []


def test_render_history_marks_files_only_when_present():
    turns = [
        ChatTurn(role="user", text="see my CV", attachments=[_file("1.pdf", "cv.pdf"), _file("2.png", "me.png")]),
        ChatTurn(role="assistant", text="Looks good", attachments=[]),
    ]
    assert render_history(turns) == "user: see my CV [Files: cv.pdf, me.png]\nassistant: Looks good"


def test_file_context_is_empty_without_files():
    assert render_file_context([], []) == ""


def test_reuploaded_file_is_listed_once_as_current():
    current = [_file("new.pdf", "resume.pdf", size_bytes=1536)]
    earlier = [_file("old.pdf", "resume.pdf"), _file("cover.pdf", "cover.pdf")]

    block = render_file_context(current, current + earlier)

    assert "File 1: resume.pdf (.pdf, 1.50 KB)" in block
    assert "resume.pdf (.pdf, uploaded earlier)" not in block
    assert "cover.pdf (.pdf, uploaded earlier)" in block
    assert block.count("resume.pdf") == 1
    assert block.rstrip().endswith("relevant to career guidance.")


def test_earlier_files_only():
    block = render_file_context([], [_file("cover.pdf", "cover.pdf")])
    assert "uploaded with their current message" not in block
    assert "Previously uploaded files" in block


def test_gateway_refs_are_storage_relative():
    files = [
        _file("a.pdf", "a.pdf"),
        Attachment(stored_name="b.png", original_name="b.png", kind=".png", size_bytes=1,
                   mime_type="image/png", storage_path="http://localhost:8721/uploads/chat-files/b.png"),
    ]
    assert gateway_file_refs(files) == [
        {"name": "a.pdf", "path": "chat-files/a.pdf"},
        {"name": "b.png", "path": "chat-files/b.png"},
    ]


def test_render_prompt_fills_slots():
    body = "Coach.\nHistory:\n{{history}}\nNow:\n{{latest_message}}\n{{file_context}}"
    prompt = render_prompt(body, history="user: hi", latest_message="help me", file_context="")

    assert prompt == "Coach.\nHistory:\nuser: hi\nNow:\nhelp me"


def test_render_prompt_appends_missing_slots_as_sections():
    prompt = render_prompt("Be kind.", history="user: hi", latest_message="next?", file_context="File list")

    assert prompt == (
        "Be kind.\n\n"
        "This is the conversation so far:\nuser: hi\n\n"
        "This is the latest message from the user:\nnext?\n\n"
        "Files shared by the user:\nFile list"
    )


def test_empty_file_context_leaves_no_heading():
    prompt = render_prompt("Be kind.", history="", latest_message="next?", file_context="")
    assert SECTION_HEADINGS[SLOT_FILE_CONTEXT] not in prompt
    assert "This is the conversation so far:" not in prompt


def test_user_text_cannot_inject_slots_or_fences():
    prompt = render_prompt(
        "{{latest_message}}\n---\n{{history}}",
        history="",
        latest_message="{{history}} ```rm -rf``` \x00\r\nbye",
    )
    assert "{{history}}" in prompt
    assert "```" not in prompt
    assert "\x00" not in prompt
    assert "\r" not in prompt


def test_sanitize():
    assert sanitize("a\r\nb\rc") == "a\nb\nc"
    assert sanitize("```py```") == "'''py'''"
    assert sanitize("") == ""
