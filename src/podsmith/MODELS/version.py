# Copyright 2024 Michael Maillet, Damien Davison, Sacha Davison
#
# Licensed under the Apache License, Version 2.0 (the "License");
# you may not use this file except in compliance with the License.
# You may obtain a copy of the License at
#
#     http://www.apache.org/licenses/LICENSE-2.0
#
# Unless required by applicable law or agreed to in writing, software
# distributed under the License is distributed on an "AS IS" BASIS,
# WITHOUT WARRANTIES OR CONDITIONS OF ANY KIND, either express or implied.
# See the License for the specific language governing permissions and
# limitations under the License.

"""
Comparable dotted-numeric versions, used to gate rkt features.
"""
from functools import total_ordering
from typing import Tuple, Union


@total_ordering
class Version:
    """
    Immutable version value ordered component by component.

    '1.24.0' > '1.4.0' and '1.4' == '1.4.0'. A leading 'v' and build
    metadata ('+git4a3c') are ignored. A pre-release ('1.24.0-rc1') sorts
    before its release and after every lower release.
    """

    __slots__ = ("_raw", "_parts", "_pre")

    def __init__(self, raw: str):
        if not raw or not raw.strip():
            raise ValueError("Empty version")
        raw = raw.strip()
        token = raw[1:] if raw[0] in "vV" else raw
        token = token.split("+", 1)[0]
        token, _, pre = token.partition("-")
        try:
            parts = tuple(int(p) for p in token.split("."))
        except ValueError:
            raise ValueError(f"Invalid version: {raw!r}") from None
        while len(parts) > 1 and parts[-1] == 0:
            parts = parts[:-1]
        object.__setattr__(self, "_raw", raw)
        object.__setattr__(self, "_parts", parts)
        object.__setattr__(self, "_pre", pre)

    def __setattr__(self, name, value):
        raise AttributeError("Version is immutable")

    @staticmethod
    def _coerce(other: Union["Version", str]) -> "Version":
        return other if isinstance(other, Version) else Version(other)

    @property
    def parts(self) -> Tuple[int, ...]:
        return self._parts

    @property
    def prerelease(self) -> str:
        return self._pre

    def _key(self):
        # a release sorts after all of its pre-releases
        return self._parts, (0, self._pre) if self._pre else (1, "")

    def __eq__(self, other):
        if not isinstance(other, (Version, str)):
            return NotImplemented
        try:
            return self._key() == self._coerce(other)._key()
        except ValueError:
            return NotImplemented

    def __lt__(self, other):
        if not isinstance(other, (Version, str)):
            return NotImplemented
        try:
            return self._key() < self._coerce(other)._key()
        except ValueError:
            return NotImplemented

    def __hash__(self):
        return hash(self._key())

    def __str__(self) -> str:
        return self._raw

    def __repr__(self) -> str:
        return f"Version({self._raw!r})"
