"""Built-in system prompts and prompt layouts for generate/modify jobs."""

from __future__ import annotations

from ..models import Mode

DEFAULT_SYSTEM_PROMPTS: dict[Mode, str] = {
    Mode.MODIFY: (
        "You are a text editing assistant for modifying text in a text editor. "
        "The user will provide text they have selected, a specific request for how to modify "
        "that selected text, and surrounding context from the document. Modify ONLY the "
        "'SELECTED TEXT TO MODIFY' based on the user's request and the context. IMPORTANT: "
        "Output _only_ the raw, modified code or text. Do not wrap your output in Markdown code "
        "blocks (for example, using triple-backtick fences before and after the code, optionally "
        "with a language specifier like 'python'). Do not include any explanatory text before or "
        "after the modified code/text unless explicitly asked to."
    ),
    Mode.GENERATE: (
        "You are a text generation assistant for a text editor. Based on the USER_REQUEST, and "
        "only if the USER_REQUEST explicitly refers to the EDITOR_CONTEXT, use that context. "
        "Otherwise, generate new text based ONLY on the USER_REQUEST, ignoring any editor "
        "context. IMPORTANT: Output _only_ the raw, generated text or code. Do NOT include any "
        "explanatory text before or after the generated text, unless the request specifically "
        "asks for explanation. If the USER_REQUEST is about the EDITOR_CONTEXT (e.g. 'summarize "
        "this', 'add comments for this code'), your output must be a NEW, SEPARATE block of text "
        "(e.g. just the summary, just the comments) and NOT the original context modified."
    ),
}

MODIFY_LAYOUT = (
    "USER_REQUEST: {request}\n\n"
    "CONTEXT_BEFORE_SELECTION:\n{before}\n\n"
    "SELECTED_TEXT_TO_MODIFY:\n{selected}\n\n"
    "CONTEXT_AFTER_SELECTION:\n{after}"
)

GENERATE_LAYOUT = (
    "USER_REQUEST: {request}\n\n"
    "EDITOR_CONTEXT (OPTIONAL SELECTION):\n{selected}\n\n"
    "CONTEXT_AROUND_CURSOR_BEFORE:\n{before}\n\n"
    "CONTEXT_AROUND_CURSOR_AFTER:\n{after}"
)

PROMPT_LAYOUTS: dict[Mode, str] = {
    Mode.MODIFY: MODIFY_LAYOUT,
    Mode.GENERATE: GENERATE_LAYOUT,
}


__all__ = ["DEFAULT_SYSTEM_PROMPTS", "GENERATE_LAYOUT", "MODIFY_LAYOUT", "PROMPT_LAYOUTS"]
