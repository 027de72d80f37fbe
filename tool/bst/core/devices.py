"""
デバイスプロファイル — 画面解像度・モバイル・高 DPI の組み合わせ定義

同一テストを複数の画面条件で繰り返し実行するためのプロファイルを管理する。

主な機能:
  - DeviceProfile: 不変のプロファイルモデル
  - resolve_profiles: 環境変数による絞り込みを適用したプロファイル集合の解決
  - compute_viewport: 高 DPI の場合に解像度を半分にした実効ビューポートの算出
  - load_profiles: YAML ファイルからの追加プロファイル読み込み
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic import ValidationError as PydanticValidationError
from ruamel.yaml import YAML
from ruamel.yaml.error import YAMLError

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# プロファイルモデル
# ---------------------------------------------------------------------------

class DeviceProfile(BaseModel):
    """シミュレート対象の画面条件。

    high_dpi が True の場合、実効ビューポートは解像度の縦横それぞれ半分になる。
    """

    model_config = ConfigDict(frozen=True)

    name: str = Field(..., description="プロファイル名")
    resolution: tuple[int, int] = Field(..., description="物理解像度（幅, 高さ）")
    mobile: bool = Field(default=False, description="モバイルレイアウトで表示するか")
    high_dpi: bool = Field(default=False, description="高 DPI ディスプレイを模倣するか")


def _profile(name: str, resolution: tuple[int, int], *, mobile: bool = False,
             high_dpi: bool = False) -> DeviceProfile:
    return DeviceProfile(name=name, resolution=resolution, mobile=mobile, high_dpi=high_dpi)


# 定義済みの全プロファイル
KNOWN_DEVICES: dict[str, DeviceProfile] = {
    "iphone_8": _profile("iphone_8", (750, 1334), mobile=True, high_dpi=True),
    "macbook_pro_15_inch": _profile("macbook_pro_15_inch", (2880, 1800), high_dpi=True),
    "hd_monitor": _profile("hd_monitor", (1920, 1080)),
}

# デフォルトで有効なプロファイル
DEFAULT_DEVICES: dict[str, DeviceProfile] = {
    "macbook_pro_15_inch": KNOWN_DEVICES["macbook_pro_15_inch"],
}


# ---------------------------------------------------------------------------
# 解決・算出
# ---------------------------------------------------------------------------

def resolve_profiles(
    env_override: Optional[str],
    devices: Optional[dict[str, DeviceProfile]] = None,
) -> dict[str, DeviceProfile]:
    """実行対象のプロファイル集合を解決する。

    env_override が登録済みの名前と一致すればそのプロファイルだけを返す。
    一致しない場合は警告を出し、登録済みの全プロファイルをそのまま返す。

    Args:
        env_override: 絞り込み対象のプロファイル名（None で絞り込みなし）
        devices: 登録済みプロファイル（None で DEFAULT_DEVICES）

    Returns:
        プロファイル名 → DeviceProfile の順序付き辞書
    """
    registry = dict(DEFAULT_DEVICES if devices is None else devices)

    if not env_override:
        return registry

    if env_override in registry:
        logger.info(
            "`%s` デバイスプロファイルに限定してテストを実行します", env_override,
        )
        return {env_override: registry[env_override]}

    logger.warning(
        "`%s` は有効なデバイスプロファイルではないため、全プロファイルで実行します",
        env_override,
    )
    return registry


def compute_viewport(profile: DeviceProfile) -> tuple[int, int]:
    """プロファイルの実効ビューポートサイズを返す。

    高 DPI を模倣する場合はピクセル数を縦横とも半分にする。
    """
    divisor = 2 if profile.high_dpi else 1
    width, height = profile.resolution
    return width // divisor, height // divisor


# ---------------------------------------------------------------------------
# YAML 読み込み
# ---------------------------------------------------------------------------

class _DeviceEntry(BaseModel):
    """YAML ファイル内の 1 プロファイル分の定義。"""

    resolution: tuple[int, int]
    mobile: bool = False
    high_dpi: bool = False


class _DevicesFile(BaseModel):
    """デバイスプロファイル YAML ファイルのスキーマ。"""

    devices: dict[str, _DeviceEntry]


def load_profiles(path: Path) -> dict[str, DeviceProfile]:
    """YAML ファイルからデバイスプロファイルを読み込む。

    ファイル形式::

        devices:
          pixel_7:
            resolution: [1080, 2400]
            mobile: true
            high_dpi: true

    Args:
        path: 読み込む YAML ファイルのパス

    Returns:
        プロファイル名 → DeviceProfile の辞書（ファイル内の記述順）

    Raises:
        FileNotFoundError: ファイルが存在しない場合
        ValueError: YAML 構文エラーまたはスキーマ検証エラーの場合
    """
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"デバイスプロファイル定義が見つかりません: {path}")

    yaml = YAML(typ="safe")
    try:
        with open(path, "r", encoding="utf-8") as f:
            data = yaml.load(f)
    except YAMLError as e:
        line_info = ""
        mark = getattr(e, "problem_mark", None)
        if mark is not None:
            line_info = f" (行 {mark.line + 1}, 列 {mark.column + 1})"
        raise ValueError(f"YAML 構文エラー{line_info}: {e}") from e

    if data is None:
        raise ValueError("YAML ファイルが空です")

    try:
        parsed = _DevicesFile(**data)
    except (PydanticValidationError, TypeError) as e:
        raise ValueError(f"スキーマ検証エラー: {e}") from e

    return {
        name: DeviceProfile(name=name, **entry.model_dump())
        for name, entry in parsed.devices.items()
    }
