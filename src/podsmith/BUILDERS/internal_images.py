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
Internal builder and tester images, used when a manifest does not declare its own.
"""
import logging
import os
import tempfile
from pathlib import Path
from typing import Optional

from ..MODELS.aci_manifest import AciManifest
from ..MODELS.image_name import ACFullName
from ..REGISTRY.rkt_client import RktClient
from ..errors import AssetNotFoundError, FetchError, InternalImageImportError

logger = logging.getLogger(__name__)

ACI_BUILDER = ACFullName("podsmith.io/aci-builder:1")
ACI_TESTER = ACFullName("podsmith.io/aci-tester:1")

BUILDER_ASSET = "aci-builder.aci"
TESTER_ASSET = "aci-tester.aci"

DEFAULT_ASSETS_DIR = Path(__file__).resolve().parent.parent / "bindata"


class AssetStore:
    """
    Bundled .aci files, looked up by name.
    """

    def __init__(self, directory: Optional[str] = None):
        self.directory = Path(directory) if directory else DEFAULT_ASSETS_DIR

    def asset(self, name: str) -> bytes:
        path = self.directory / name
        try:
            return path.read_bytes()
        except OSError as e:
            raise AssetNotFoundError(name, str(self.directory)) from e


class InternalImages:
    """
    Injects and imports the internal builder and tester images.
    """

    def __init__(self, rkt: RktClient, assets: Optional[AssetStore] = None):
        self.rkt = rkt
        self.assets = assets or AssetStore()

    def import_builder_if_needed(self, manifest: AciManifest) -> None:
        if manifest.builder.image.is_empty:
            manifest.builder.image = ACI_BUILDER
            self._import(ACI_BUILDER, BUILDER_ASSET)

    def import_tester_if_needed(self, manifest: AciManifest) -> None:
        if manifest.test_builder.is_empty:
            manifest.test_builder = ACI_TESTER
            self._import(ACI_TESTER, TESTER_ASSET)

    def _import(self, image: ACFullName, asset_name: str) -> None:
        if self.rkt.has_image(image):
            logger.debug("Internal image %s already in store", image)
            return

        content = self.assets.asset(asset_name)
        fd, staging = tempfile.mkstemp(prefix="podsmith-", suffix=".aci")
        try:
            with os.fdopen(fd, "wb") as f:
                f.write(content)
            logger.info("Importing internal image %s", image)
            # bundled images are unsigned
            self.rkt.fetch_insecure(staging)
        except FetchError as e:
            raise InternalImageImportError(str(image)) from e
        finally:
            os.remove(staging)
