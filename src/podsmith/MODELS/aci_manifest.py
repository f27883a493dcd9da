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
Models for the ACI and pod manifests written by users.
"""
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field

from .image_name import ACFullName


class NameValue(BaseModel):
    """
    An appc annotation or label.
    """
    name: str
    value: str = ""


class AciDefinition(BaseModel):
    """
    What ends up in the built image: app spec, dependencies, annotations.
    """
    model_config = ConfigDict(populate_by_name=True)

    app: Optional[Dict[str, Any]] = None
    annotations: List[NameValue] = []
    dependencies: List[ACFullName] = []
    path_whitelist: Optional[List[str]] = Field(default=None, alias="pathWhitelist")


class BuilderDefinition(BaseModel):
    """
    Image used to run the build of an ACI.
    """
    image: ACFullName = ACFullName("")
    dependencies: List[ACFullName] = []


class AciManifest(BaseModel):
    """
    Content of an aci-manifest.yml.
    """
    model_config = ConfigDict(populate_by_name=True)

    name_and_version: ACFullName = Field(alias="name")
    aci: AciDefinition = Field(default_factory=AciDefinition)
    builder: BuilderDefinition = Field(default_factory=BuilderDefinition)
    test_builder: ACFullName = Field(default=ACFullName(""), alias="testBuilder")


class RuntimeApp(BaseModel):
    """
    One application entry of a pod.
    """
    name: str = ""
    dependencies: List[ACFullName] = []
    annotations: List[NameValue] = []
    app: Optional[Dict[str, Any]] = None


class PodDefinition(BaseModel):
    apps: List[RuntimeApp] = []


class PodManifest(BaseModel):
    """
    Content of a pod-manifest.yml: apps built and tested together.
    """
    model_config = ConfigDict(populate_by_name=True)

    name: ACFullName
    pod: PodDefinition = Field(default_factory=PodDefinition)
    builder: Optional[BuilderDefinition] = None
    test_builder: Optional[ACFullName] = Field(default=None, alias="testBuilder")
