"""
メール確認 — 受信箱の内容に対するアサーション

メール送信そのものは外部の仕組みに任せ、ハーネスは受信者・件名で取り出した
メッセージの内容だけを検証する。受信箱の実装は Mailbox Protocol を満たせばよい。
"""

from __future__ import annotations

import logging
from typing import Optional, Protocol, runtime_checkable

from pydantic import BaseModel, Field

from ..core.errors import EmailNotFound

logger = logging.getLogger(__name__)


class MailMessage(BaseModel):
    """受信したメール 1 通。"""

    to: list[str] = Field(..., description="宛先アドレス")
    subject: str = Field(default="", description="件名")
    body: str = Field(default="", description="本文（テキストまたは HTML）")


@runtime_checkable
class Mailbox(Protocol):
    """メールキャプチャの共通インターフェース。"""

    async def messages_for(self, recipient: str) -> list[MailMessage]:
        """受信者宛てのメッセージを受信順に返す。"""
        ...


class InMemoryMailbox:
    """プロセス内でメッセージを保持する Mailbox 実装。"""

    def __init__(self) -> None:
        self._messages: list[MailMessage] = []

    def deliver(self, message: MailMessage) -> None:
        self._messages.append(message)

    def clear(self) -> None:
        self._messages.clear()

    async def messages_for(self, recipient: str) -> list[MailMessage]:
        return [m for m in self._messages if recipient in m.to]


async def open_email(
    mailbox: Mailbox, recipient: str, subject: Optional[str] = None
) -> MailMessage:
    """受信者宛ての最新のメールを返す。subject 指定時は件名が一致するものに限る。

    Raises:
        EmailNotFound: 条件に一致するメールがない場合
    """
    messages = await mailbox.messages_for(recipient)
    if subject is not None:
        messages = [m for m in messages if m.subject == subject]
    if not messages:
        condition = f"（件名: '{subject}'）" if subject is not None else ""
        raise EmailNotFound(f"{recipient} 宛てのメールが見つかりません{condition}")
    logger.debug("メールを取得しました: %s", messages[-1].subject)
    return messages[-1]


def assert_email_contains(message: MailMessage, text: str) -> None:
    """メール本文にテキストが含まれることを検証する。"""
    if text not in message.body:
        raise AssertionError(
            f"メール '{message.subject}' の本文に '{text}' が含まれていません"
        )
