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
ACI full names like 'example.com/aci-nginx:1.9.4-1'.
"""
from typing import Any

from pydantic_core import core_schema


class ACFullName(str):
    """
    Name and optional version of an ACI, as written in manifests.

    Examples:
        - example.com/aci-nginx:1.9 -> name 'example.com/aci-nginx', version '1.9'
        - example.com/aci-nginx -> version '' (latest)
        - '' -> empty, used as 'not declared'
    """

    @classmethod
    def __get_pydantic_core_schema__(cls, source: Any, handler: Any):
        return core_schema.no_info_after_validator_function(
            cls,
            core_schema.str_schema(),
            serialization=core_schema.plain_serializer_function_ser_schema(str),
        )

    def _split(self):
        last_slash = self.rfind("/")
        last_colon = self.rfind(":")
        if last_colon > last_slash:
            return self[:last_colon], self[last_colon + 1:]
        return str(self), ""

    @property
    def name(self) -> str:
        return self._split()[0]

    @property
    def version(self) -> str:
        return self._split()[1]

    @property
    def short_name(self) -> str:
        """Last path element of the name, e.g. 'aci-nginx'."""
        return self.name.rsplit("/", 1)[-1]

    @property
    def is_empty(self) -> bool:
        return self.strip() == ""

    @classmethod
    def of(cls, name: str, version: str = "") -> "ACFullName":
        return cls(f"{name}:{version}" if version else name)

    def __repr__(self) -> str:
        return f"ACFullName({str(self)!r})"
