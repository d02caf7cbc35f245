"""Slack message shapes built by the notifier."""

from typing import Any, Dict, List, Literal, Union

from pydantic import BaseModel


class HeaderBlock(BaseModel):
    kind: Literal["header"] = "header"
    text: str

    def to_slack(self) -> Dict[str, Any]:
        return {"type": "section", "text": {"type": "mrkdwn", "text": self.text}}


class TextBlock(BaseModel):
    kind: Literal["text"] = "text"
    text: str
    markdown: bool = False

    def to_slack(self) -> Dict[str, Any]:
        text_type = "mrkdwn" if self.markdown else "plain_text"
        return {"type": "section", "text": {"type": text_type, "text": self.text}}


class DividerBlock(BaseModel):
    kind: Literal["divider"] = "divider"

    def to_slack(self) -> Dict[str, Any]:
        return {"type": "divider"}


Block = Union[HeaderBlock, TextBlock, DividerBlock]


class NotificationMessage(BaseModel):
    text: str
    blocks: List[Block]

    def to_slack(self) -> Dict[str, Any]:
        """Webhook body: flat text fallback plus the rendered blocks."""
        return {
            "text": self.text,
            "blocks": [block.to_slack() for block in self.blocks],
        }
