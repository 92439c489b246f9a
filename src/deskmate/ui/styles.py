"""Textual CSS for the assistant window.

The conversation takes all free height. The log panel (hidden until
toggled) sits below it, and the status line plus input row are pinned
to the bottom edge.
"""

APP_CSS = """
Screen {
    layout: vertical;
    background: $background;
}

Header, Footer {
    background: $panel;
}

/* ---- conversation ---- */
#chat-history {
    height: 1fr;
    padding: 0 1;
    background: $surface;
    border: tall $primary 40%;
    border-title-color: $primary;
    border-subtitle-color: $text-muted;
    border-subtitle-align: right;
    scrollbar-gutter: stable;

    &:focus-within {
        border: tall $primary;
    }
}

.chat-message {
    width: 100%;
    height: auto;
    margin-bottom: 1;
    padding: 0 1;

    &:hover {
        background: $boost;
    }

    .message-header {
        height: 1;
        text-style: bold;
    }

    .message-content {
        height: auto;
    }
}

.user-message {
    margin-left: 8;
    border-right: wide $accent;
    background: $accent 10%;

    .message-header {
        color: $accent;
        text-align: right;
    }
}

.assistant-message {
    margin-right: 8;
    border-left: wide $primary;
    background: $primary 10%;

    .message-header {
        color: $primary;
    }
}

.system-message {
    color: $text-muted;
    text-style: italic;

    .message-header {
        color: $text-muted;
        text-style: none;
    }
}

Markdown {
    margin: 0;
    padding: 0;
}

MarkdownFence {
    margin: 1 0;
    max-height: 20;
}

/* ---- log panel ---- */
#debug-panel {
    height: 10;
    padding: 0 1;
    background: $surface-darken-1;
    border: tall $warning 40%;
    border-title-color: $warning;
    border-subtitle-color: $text-muted;

    &:focus {
        border: tall $warning;
    }
}

/* ---- status + input ---- */
#bottom-bar {
    height: auto;
    background: $panel;
}

#status {
    height: 1;
    padding: 0 2;
    color: $text-muted;

    &.listening {
        color: $text;
        background: $error 30%;
    }
}

ChatInputBar {
    height: 4;
    padding: 0 1;

    TextArea {
        width: 1fr;
        border: tall $primary 40%;

        &:focus {
            border: tall $primary;
        }
    }

    Button {
        height: 100%;
        min-width: 7;
        margin-left: 1;
    }

    #send-btn {
        width: 9;
    }

    #mic-btn {
        width: 7;

        &.listening {
            background: $error;
            text-style: bold;
        }
    }
}

/* ---- settings dialog ---- */
SettingsScreen {
    align: center middle;
    background: $background 60%;
}

#settings-dialog {
    width: 76;
    height: auto;
    max-height: 90%;
    padding: 1 2;
    background: $panel;
    border: thick $primary;
}

#settings-title {
    width: 100%;
    content-align: center middle;
    text-style: bold reverse;
    margin-bottom: 1;
}

.setting-row {
    height: auto;

    Label {
        width: 24;
        padding: 1 1 0 0;
    }

    Input, Select {
        width: 1fr;
    }
}

#settings-buttons {
    height: 3;
    margin-top: 1;
    align-horizontal: right;

    Button {
        margin-left: 2;
    }
}
"""
