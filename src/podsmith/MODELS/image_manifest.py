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
Models for appc image manifests, as stored in ACIs and printed by rkt.
"""
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field

from .aci_manifest import NameValue


class Dependency(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    image_name: str = Field(alias="imageName")
    image_id: Optional[str] = Field(default=None, alias="imageID")
    labels: List[NameValue] = []


class ImageManifest(BaseModel):
    """
    appc ImageManifest (schema 0.8), restricted to the fields podsmith reads.
    """
    model_config = ConfigDict(populate_by_name=True)

    ac_kind: str = Field(default="ImageManifest", alias="acKind")
    ac_version: str = Field(default="0.8.11", alias="acVersion")
    name: str
    labels: List[NameValue] = []
    app: Optional[Dict[str, Any]] = None
    annotations: List[NameValue] = []
    dependencies: List[Dependency] = []

    def label(self, name: str) -> Optional[str]:
        for label in self.labels:
            if label.name == name:
                return label.value
        return None

    def annotation(self, name: str) -> Optional[str]:
        for annotation in self.annotations:
            if annotation.name == name:
                return annotation.value
        return None

    @property
    def version(self) -> str:
        return self.label("version") or ""

    def to_json(self) -> str:
        return self.model_dump_json(by_alias=True, exclude_none=True, indent=2)
