"""
Select2 補助 — キー入力によるコンボボックスの候補選択

Select2 の検索フィールドは入力ごとに候補を絞り込むため、値をまとめて設定するのではなく
1 文字ずつキー入力して Enter で確定する。複数値の場合は改行で連結し、
それぞれの値が順に確定されるようにする。
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Union

if TYPE_CHECKING:
    from ..core.driver import Driver

logger = logging.getLogger(__name__)

SEARCH_FIELD = ".select2-search__field"
TERMINATOR = "\n"


def keystrokes_for(value: Union[str, list[str], tuple[str, ...]]) -> list[str]:
    """入力する文字を 1 文字ずつのリストで返す。

    リストは改行で連結し、末尾に確定用の改行を付ける。
    """
    if isinstance(value, (list, tuple)):
        value = TERMINATOR.join(value)
    return list(f"{value}{TERMINATOR}")


async def select2_select(
    driver: Driver, label: str, value: Union[str, list[str], tuple[str, ...]]
) -> None:
    """ラベルテキストが完全一致するフィールドで値を選択する。

    Args:
        driver: 操作に使用する Driver
        label: フィールドのラベルテキスト（完全一致）
        value: 選択する値、または順に選択する値のリスト
    """
    logger.info("select2_select: label='%s', value=%r", label, value)

    field = await driver.find("label", text=label, exact=True)
    await driver.click(field)

    for key in keystrokes_for(value):
        container = await driver.parent(field)
        search = await driver.find(SEARCH_FIELD, within=container)
        await driver.send_keys(search, key)
