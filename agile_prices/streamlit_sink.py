import json

import streamlit.components.v1 as components

DEFAULT_PAGE_TITLE = "Agile Prices"


def slot_anchor(key: str) -> str:
    return f"slot-{key}"


class StreamlitDisplaySink:
    """Queues tab-title and scroll scripts until the history list is on the page"""

    def __init__(self):
        self.title = None
        self.pending = []

    def set_title(self, label: str) -> None:
        self.title = label
        self.pending.append(f"window.parent.document.title = {json.dumps(label)};")

    def scroll_to_slot(self, key: str) -> None:
        self.pending.append(
            f"const el = window.parent.document.getElementById({json.dumps(slot_anchor(key))});"
            "if (el) { el.scrollIntoView({behavior: 'smooth', block: 'nearest'}); }"
        )

    def page_title(self) -> str:
        """Title for st.set_page_config, which resets the tab on every full run."""
        return self.title or DEFAULT_PAGE_TITLE

    def flush(self) -> None:
        if self.pending:
            components.html(f"<script>{''.join(self.pending)}</script>", height=0)
            self.pending = []
