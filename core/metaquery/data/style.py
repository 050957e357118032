"""
metaquery - Vendor-neutral Query and Metadata Framework
Copyright © 2025-2026 Ilona Tag

This file is part of metaquery.

metaquery is free software: you can redistribute it and/or modify
it under the terms of the GNU Affero General Public License as
published by the Free Software Foundation, either version 3 of
the License, or (at your option) any later version.

metaquery is distributed in the hope that it will be useful,
but WITHOUT ANY WARRANTY; without even the implied warranty of
MERCHANTABILITY or FITNESS FOR A PARTICULAR PURPOSE. See the
GNU Affero General Public License for more details.

You should have received a copy of the GNU Affero General Public License
along with metaquery. If not, see <https://www.gnu.org/licenses/>.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, fields, replace
from enum import Enum
from typing import Optional

from metaquery.errors import InvalidStyleError

"""
Presentation ("styling") attributes of a single cell value.

Styling is orthogonal to data: most datastores do not support it and every
cell of their datasets carries NO_STYLE. Sources that do (e.g. spreadsheet
backed ones) attach a Style per cell through a style supplier.

Styles are immutable values. Create them through StyleBuilder, which
validates its arguments.
"""


class TextAlignment(str, Enum):
  LEFT = "LEFT"
  RIGHT = "RIGHT"
  CENTER = "CENTER"
  JUSTIFY = "JUSTIFY"


class SizeUnit(str, Enum):
  PT = "PT"
  PX = "PX"
  PERCENT = "PERCENT"

  @property
  def css_suffix(self) -> str:
    return {"PT": "pt", "PX": "px", "PERCENT": "%"}[self.value]


_HEX_COLOR_RE = re.compile(r"^#?([0-9a-fA-F]{6})$")


def _check_channel(name: str, value: object) -> int:
  if isinstance(value, bool) or not isinstance(value, int):
    raise InvalidStyleError(f"Color channel {name} must be an integer, got {value!r}")
  if not 0 <= value <= 255:
    raise InvalidStyleError(f"Color channel {name} must be within 0-255, got {value}")
  return value


@dataclass(frozen=True)
class Color:
  red: int
  green: int
  blue: int

  def __post_init__(self):
    _check_channel("red", self.red)
    _check_channel("green", self.green)
    _check_channel("blue", self.blue)

  @classmethod
  def from_hex(cls, value: str) -> "Color":
    """Parse "#rrggbb" (leading # optional)."""
    m = _HEX_COLOR_RE.match((value or "").strip())
    if not m:
      raise InvalidStyleError(f"Invalid hex color {value!r}, expected '#rrggbb'")
    h = m.group(1)
    return cls(int(h[0:2], 16), int(h[2:4], 16), int(h[4:6], 16))

  def to_css(self) -> str:
    return f"rgb({self.red},{self.green},{self.blue})"


@dataclass(frozen=True)
class Style:
  bold: bool = False
  italic: bool = False
  underline: bool = False
  font_size: Optional[int] = None
  font_size_unit: Optional[SizeUnit] = None
  alignment: Optional[TextAlignment] = None
  foreground_color: Optional[Color] = None
  background_color: Optional[Color] = None

  def __post_init__(self):
    if self.font_size is not None:
      if isinstance(self.font_size, bool) or not isinstance(self.font_size, int) or self.font_size <= 0:
        raise InvalidStyleError(f"Font size must be a positive integer, got {self.font_size!r}")
    if self.font_size_unit is not None and not isinstance(self.font_size_unit, SizeUnit):
      raise InvalidStyleError(f"Font size unit must be a SizeUnit, got {self.font_size_unit!r}")
    if self.alignment is not None and not isinstance(self.alignment, TextAlignment):
      raise InvalidStyleError(f"Alignment must be a TextAlignment, got {self.alignment!r}")
    for name in ("foreground_color", "background_color"):
      value = getattr(self, name)
      if value is not None and not isinstance(value, Color):
        raise InvalidStyleError(f"{name} must be a Color, got {value!r}")

  @property
  def is_empty(self) -> bool:
    return self == NO_STYLE

  def __bool__(self) -> bool:
    return not self.is_empty

  def to_css(self) -> str:
    """
    Canonical CSS representation. Declarations always appear in the order
    font-weight, font-style, text-decoration, font-size, text-align, color,
    background-color and are joined by "; " without a trailing separator.
    """
    decl: list[str] = []
    if self.bold:
      decl.append("font-weight: bold")
    if self.italic:
      decl.append("font-style: italic")
    if self.underline:
      decl.append("text-decoration: underline")
    if self.font_size is not None:
      unit = self.font_size_unit or SizeUnit.PT
      decl.append(f"font-size: {self.font_size}{unit.css_suffix}")
    if self.alignment is not None:
      decl.append(f"text-align: {self.alignment.value.lower()}")
    if self.foreground_color is not None:
      decl.append(f"color: {self.foreground_color.to_css()}")
    if self.background_color is not None:
      decl.append(f"background-color: {self.background_color.to_css()}")
    return "; ".join(decl)

  def merge(self, other: "Style") -> "Style":
    """
    Overlay `other` on top of this style: flags are OR-ed, optional
    attributes set in `other` win. NO_STYLE is the identity on both sides.
    """
    if other.is_empty:
      return self
    if self.is_empty:
      return other

    changes = {}
    for f in fields(self):
      mine = getattr(self, f.name)
      theirs = getattr(other, f.name)
      if isinstance(mine, bool):
        changes[f.name] = mine or theirs
      elif theirs is not None:
        changes[f.name] = theirs
    # a font size without its own unit must not inherit a stale unit
    if other.font_size is not None and other.font_size_unit is None:
      changes["font_size_unit"] = None
    return replace(self, **changes)

  def __str__(self) -> str:
    return self.to_css()


NO_STYLE = Style()


class StyleBuilder:
  """
  Fluent builder for Style objects:

    style = StyleBuilder().bold().font_size(12, SizeUnit.PX).background("#ff0000").create()
  """

  def __init__(self, base: Style = NO_STYLE):
    self._values = {f.name: getattr(base, f.name) for f in fields(base)}

  def bold(self) -> "StyleBuilder":
    self._values["bold"] = True
    return self

  def italic(self) -> "StyleBuilder":
    self._values["italic"] = True
    return self

  def underline(self) -> "StyleBuilder":
    self._values["underline"] = True
    return self

  def font_size(self, size: int, unit: SizeUnit = SizeUnit.PT) -> "StyleBuilder":
    if isinstance(size, bool) or not isinstance(size, int) or size <= 0:
      raise InvalidStyleError(f"Font size must be a positive integer, got {size!r}")
    if not isinstance(unit, SizeUnit):
      try:
        unit = SizeUnit(str(unit).upper())
      except ValueError as exc:
        allowed = ", ".join(u.value for u in SizeUnit)
        raise InvalidStyleError(f"Unknown size unit {unit!r}. Allowed: {allowed}") from exc
    self._values["font_size"] = size
    self._values["font_size_unit"] = unit
    return self

  def align(self, alignment: TextAlignment) -> "StyleBuilder":
    if not isinstance(alignment, TextAlignment):
      try:
        alignment = TextAlignment(str(alignment).upper())
      except ValueError as exc:
        raise InvalidStyleError(f"Unknown text alignment {alignment!r}") from exc
    self._values["alignment"] = alignment
    return self

  def foreground(self, *color) -> "StyleBuilder":
    self._values["foreground_color"] = self._to_color(color)
    return self

  def background(self, *color) -> "StyleBuilder":
    self._values["background_color"] = self._to_color(color)
    return self

  def create(self) -> Style:
    style = Style(**self._values)
    # keep the singleton for unstyled values
    return NO_STYLE if style == NO_STYLE else style

  @staticmethod
  def _to_color(args: tuple) -> Color:
    # foreground(Color), foreground("#ff0000"), foreground(255, 0, 0)
    if len(args) == 1:
      value = args[0]
      if isinstance(value, Color):
        return value
      if isinstance(value, str):
        return Color.from_hex(value)
      if isinstance(value, tuple) and len(value) == 3:
        return Color(*value)
    if len(args) == 3:
      return Color(*args)
    raise InvalidStyleError(f"Cannot interpret color arguments {args!r}")
