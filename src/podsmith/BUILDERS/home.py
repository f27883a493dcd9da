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
Shared context for a podsmith run: the configuration and the rkt client.
"""
from dataclasses import dataclass, field
from typing import Optional

from ..MODELS.runtime_config import HomeConfig
from ..REGISTRY.rkt_client import RktClient
from .internal_images import AssetStore, InternalImages


@dataclass
class BuildArgs:
    """Options of a build or test run."""

    keep_builder: bool = False
    test: bool = False


@dataclass
class Home:
    """
    Built once at startup and handed to every Aci and Pod.
    """

    config: HomeConfig
    rkt: RktClient
    assets: AssetStore = field(default_factory=AssetStore)
    internal_images: Optional[InternalImages] = None

    def __post_init__(self):
        if self.internal_images is None:
            self.internal_images = InternalImages(self.rkt, self.assets)

    @classmethod
    def create(cls, config: HomeConfig, assets_dir: Optional[str] = None) -> "Home":
        """
        Creates the rkt client from the configuration.

        Raises:
            VersionDetectionError, UnsupportedVersionError: When rkt is unusable.
        """
        return cls(config=config, rkt=RktClient(config.rkt), assets=AssetStore(assets_dir))
