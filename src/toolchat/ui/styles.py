"""CSS styles for the chat surface.

Hides layout and styling decisions from the application logic.
"""

APP_CSS = """
Screen {
    layout: vertical;
    background: $background;
}

/* Conversation */
#messages {
    height: 1fr;
    background: $panel;
    border: round $primary 60%;
    border-title-color: $primary;
    border-title-style: bold;
    border-subtitle-color: $text-muted;
    border-subtitle-align: right;
    padding: 0 1;
    scrollbar-gutter: stable;

    &:focus-within {
        border: round $primary;
    }
}

.bubble {
    height: auto;
    margin: 1 0 0 0;
    padding: 0 1;
}

.bubble-header {
    text-style: bold;
    color: $text-muted;
}

.user-bubble {
    border-left: thick $accent;
    margin-left: 8;
}

.assistant-bubble {
    border-left: thick $primary;
    margin-right: 8;

    &.typing .bubble-header {
        color: $warning;
    }
}

.sponsor-bubble {
    border: round $secondary;
    background: $secondary 10%;
    margin: 1 4 0 4;

    &.resolved {
        border: round $success;
    }
}

.bubble-body {
    height: auto;
}

/* Suggestions */
#suggestions {
    height: auto;
    padding: 0 1;
    display: none;

    &.visible {
        display: block;
    }

    Button {
        margin: 0 1 0 0;
        min-width: 10;
    }
}

/* Status line */
#status {
    height: 1;
    padding: 0 2;
    color: $text-muted;

    &.busy {
        color: $warning;
    }
}

/* Input */
#chat-input-bar {
    height: auto;
    max-height: 8;
    padding: 0 1;

    TextArea {
        width: 1fr;
        height: auto;
        min-height: 3;
        max-height: 6;
        border: round $border;

        &:focus {
            border: round $primary;
        }
    }

    Button {
        margin: 0 0 0 1;
        min-width: 8;
    }
}
"""
