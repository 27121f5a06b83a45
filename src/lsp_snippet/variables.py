"""
Recognized snippet variables.

These are the TextMate editor-context variables the engine knows about.
For a recognized variable an unset value means "currently empty"; any other
name in a snippet is treated as a named tab stop.
"""

TM_SELECTED_TEXT = "TM_SELECTED_TEXT"
TM_CURRENT_LINE = "TM_CURRENT_LINE"
TM_CURRENT_WORD = "TM_CURRENT_WORD"
TM_LINE_INDEX = "TM_LINE_INDEX"
TM_LINE_NUMBER = "TM_LINE_NUMBER"
TM_FILENAME = "TM_FILENAME"
TM_FILENAME_BASE = "TM_FILENAME_BASE"
TM_DIRECTORY = "TM_DIRECTORY"
TM_FILEPATH = "TM_FILEPATH"

STANDARD_VARIABLES = {
    TM_SELECTED_TEXT: "The currently selected text.",
    TM_CURRENT_LINE: "The contents of the current line.",
    TM_CURRENT_WORD: "The contents of the word under cursor.",
    TM_LINE_INDEX: "The zero-based line number.",
    TM_LINE_NUMBER: "The one-based line number.",
    TM_FILENAME: "The filename of the current document.",
    TM_FILENAME_BASE: "The filename of the current document without its extension.",
    TM_DIRECTORY: "The directory of the current document.",
    TM_FILEPATH: "The full file path of the current document.",
}


def is_known_variable(name: str) -> bool:
    return name in STANDARD_VARIABLES
