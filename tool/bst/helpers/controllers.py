"""
コントローラー切断シミュレーション — UI コントローラーの不正な再接続への耐性確認

data-controller 属性で要素に結び付けられたクライアント側の振る舞いを
強制的に切り離し、再度結び付ける。切り離している間に要素の中身を
置き換えることで、素朴な再接続処理が想定しない状況を再現する。

属性の対応:
  - data-controller: 現在結び付いているコントローラー識別子
  - data-former-controller: 切断時に退避した識別子
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any, Optional

if TYPE_CHECKING:
    from ..core.driver import Driver

logger = logging.getLogger(__name__)

CONTROLLER_ATTRIBUTE = "data-controller"
FORMER_CONTROLLER_ATTRIBUTE = "data-former-controller"

_SET_ATTRIBUTE_JS = "(element, [attribute, value]) => element.setAttribute(attribute, value)"
_SET_INNER_HTML_JS = "(element, innerHTML) => { element.innerHTML = innerHTML }"


class ControllerLifecycle:
    """要素上のコントローラー結び付けを操作する。"""

    def __init__(self, driver: Driver) -> None:
        self._driver = driver

    async def set_element_attribute(self, element: Any, attribute: str, value: str) -> None:
        await self._driver.evaluate_on(element, _SET_ATTRIBUTE_JS, [attribute, value])

    async def disconnect(self, element: Any) -> None:
        """現在の識別子を退避し、data-controller を空にする。"""
        controller = await self._driver.get_attribute(element, CONTROLLER_ATTRIBUTE)
        logger.debug("コントローラーを切断: %s", controller)
        await self.set_element_attribute(element, FORMER_CONTROLLER_ATTRIBUTE, controller or "")
        await self.set_element_attribute(element, CONTROLLER_ATTRIBUTE, "")

    async def reconnect(self, element: Any) -> None:
        """直前の disconnect() で退避した識別子を data-controller に戻す。

        disconnect() を呼ばずに呼んだ場合の動作は未定義。
        """
        former = await self._driver.get_attribute(element, FORMER_CONTROLLER_ATTRIBUTE)
        logger.debug("コントローラーを再接続: %s", former)
        await self.set_element_attribute(element, CONTROLLER_ATTRIBUTE, former or "")

    async def improperly_disconnect_and_reconnect(self, element: Any) -> None:
        """切断中に要素の中身を切断前のスナップショットで置き換えてから再接続する。"""
        inner_html = await self._driver.inner_html(element)

        await self.disconnect(element)
        await self._driver.evaluate_on(element, _SET_INNER_HTML_JS, inner_html)
        await self.reconnect(element)

    async def find_controller_for_label(
        self, label: str, controller: str, wrapper: bool = False
    ) -> Optional[Any]:
        """ラベルに対応するフィールドのコントローラー要素を探す。

        Args:
            label: ラベルテキスト（完全一致）
            controller: data-controller の値
            wrapper: True の場合はラベルの祖父要素そのものを対象にする

        Returns:
            コントローラー要素。wrapper=True で祖父要素が対象のコントローラーでない場合は None
        """
        label_el = await self._driver.find("label", text=label, exact=True)

        if wrapper:
            wrapper_el = await self._driver.parent(label_el, levels=2)
            current = await self._driver.get_attribute(wrapper_el, CONTROLLER_ATTRIBUTE)
            return wrapper_el if current == controller else None

        container = await self._driver.parent(label_el)
        return await self._driver.find(
            f'[{CONTROLLER_ATTRIBUTE}="{controller}"]', within=container,
        )
