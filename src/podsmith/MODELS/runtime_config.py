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
Models for rkt client configuration and for the tool's home configuration file.
"""
from enum import Enum, IntFlag
from typing import Iterable, Optional, Tuple, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator


class PullPolicy(str, Enum):
    """
    When rkt should go to the network for an image already in its store.
    """
    NEVER = "never"
    NEW = "new"
    UPDATE = "update"


class DiscoveryInsecureOption(IntFlag):
    """
    Trust relaxations understood by appc image discovery.
    """
    NONE = 0
    TLS = 1
    HTTP = 2


KNOWN_INSECURE_OPTIONS = (
    "tls", "http", "image", "ondisk", "pubkey", "capabilities",
    "paths", "seccomp", "all-fetch", "all-run", "all",
)
DEFAULT_INSECURE_OPTIONS = ("ondisk", "image")


class InsecureOptions(tuple):
    """
    Ordered set of rkt --insecure-options values, stored lowercase.
    """

    def __new__(cls, options: Union[str, Iterable[str], None] = None):
        if options is None:
            options = ()
        elif isinstance(options, str):
            options = options.split(",")
        values = []
        for option in options:
            option = option.strip().lower()
            if not option:
                continue
            if option not in KNOWN_INSECURE_OPTIONS:
                raise ValueError(f"Unknown insecure option: {option!r}")
            if option not in values:
                values.append(option)
        return super().__new__(cls, values)

    def has_image(self) -> bool:
        return "image" in self

    def with_image(self) -> "InsecureOptions":
        """Copy of these options with image verification disabled."""
        if self.has_image():
            return self
        return InsecureOptions(list(self) + ["image"])

    def encode(self) -> str:
        return ",".join(self)

    def to_discovery_insecure_option(self) -> DiscoveryInsecureOption:
        value = DiscoveryInsecureOption.NONE
        for option in self:
            if option == "tls":
                value |= DiscoveryInsecureOption.TLS
            elif option == "http":
                value |= DiscoveryInsecureOption.HTTP
        return value


class RuntimeConfig(BaseModel):
    """
    How to invoke rkt. Frozen: derive a new one with model_copy(update=...).
    """
    model_config = ConfigDict(frozen=True, populate_by_name=True)

    path: str = ""
    insecure_options: Tuple[str, ...] = Field(
        default=DEFAULT_INSECURE_OPTIONS, alias="insecureOptions"
    )
    dir: str = ""
    local_config: str = Field(default="", alias="localConfig")
    system_config: str = Field(default="", alias="systemConfig")
    user_config: str = Field(default="", alias="userConfig")
    pull_policy: Optional[PullPolicy] = Field(default=None, alias="pullPolicy")
    trust_keys_from_https: bool = Field(default=False, alias="trustKeysFromHttps")
    no_store: bool = Field(default=False, alias="noStore")
    store_only: bool = Field(default=False, alias="storeOnly")

    @field_validator("insecure_options", mode="before")
    @classmethod
    def _parse_insecure_options(cls, value):
        options = InsecureOptions(value)
        return options if options else InsecureOptions(DEFAULT_INSECURE_OPTIONS)

    @property
    def insecure(self) -> InsecureOptions:
        return InsecureOptions(self.insecure_options)


class HomeConfig(BaseModel):
    """
    Content of the podsmith configuration file.
    """
    model_config = ConfigDict(frozen=True, populate_by_name=True)

    rkt: RuntimeConfig = Field(default_factory=RuntimeConfig)
    target_work_dir: Optional[str] = Field(default=None, alias="targetWorkDir")
