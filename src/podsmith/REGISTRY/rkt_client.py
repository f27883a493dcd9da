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
Client driving the rkt binary.
Composes rkt command lines from the configuration and maps results and
failures back to Python values and exceptions.
"""
import logging
import shutil
from typing import List, Optional, Sequence, Tuple, Union

from pydantic import ValidationError

from ..MODELS.image_manifest import ImageManifest
from ..MODELS.runtime_config import InsecureOptions, PullPolicy, RuntimeConfig
from ..MODELS.version import Version
from ..RUNNERS.process_runner import CommandExecutor
from ..errors import (
    CatManifestError,
    CommandError,
    ContainerRemoveError,
    FetchError,
    ImageRemoveError,
    ManifestUnmarshalError,
    RunError,
    UnsupportedVersionError,
    VersionDetectionError,
)

logger = logging.getLogger(__name__)

RKT_SUPPORTED_VERSION = Version("1.4.0")
RKT_VERSION_WITH_PULL_POLICY = Version("1.24.0")

_VERSION_PREFIX = "rkt Version:"


def _as_list(values: Union[str, Sequence[str]]) -> List[str]:
    if isinstance(values, str):
        return [values]
    return list(values)


class RktClient:
    """
    One rkt client per process run, passed to whatever needs rkt.

    The rkt version is read once at construction and the global arguments are
    computed once; the client is not mutated afterwards.
    """

    def __init__(self, config: Optional[RuntimeConfig] = None,
                 executor: Optional[CommandExecutor] = None):
        """
        Initialize the client and check the rkt version.

        Args:
            config: How to invoke rkt. Defaults to 'rkt' from PATH.
            executor: Runs the commands. Defaults to a subprocess executor.

        Raises:
            VersionDetectionError: If the version cannot be read.
            UnsupportedVersionError: If rkt is older than 1.4.0.
        """
        self.config = config or RuntimeConfig()
        self.executor = executor or CommandExecutor()
        self.global_args: Tuple[str, ...] = tuple(
            self._prepare_global_args(self.config.insecure)
        )

        version = self.get_version()
        if version < RKT_SUPPORTED_VERSION:
            raise UnsupportedVersionError(version, RKT_SUPPORTED_VERSION)
        self.version = version
        logger.debug("New rkt client version=%s args=%s", version, " ".join(self.global_args))

    @property
    def binary(self) -> str:
        return self.global_args[0]

    def _prepare_global_args(self, insecure_options: InsecureOptions) -> List[str]:
        cfg = self.config
        args = [cfg.path or "rkt"]
        if logging.getLogger("podsmith").isEnabledFor(logging.DEBUG):
            args.append("--debug")
        if cfg.trust_keys_from_https:
            args.append("--trust-keys-from-https")
        if cfg.user_config:
            args.append(f"--user-config={cfg.user_config}")
        if cfg.local_config:
            args.append(f"--local-config={cfg.local_config}")
        if cfg.system_config:
            args.append(f"--system-config={cfg.system_config}")
        if cfg.dir:
            args.append(f"--dir={cfg.dir}")
        args.append(f"--insecure-options={insecure_options.encode()}")
        return args

    def _fetch_args(self, global_args: Sequence[str], pull_policy: PullPolicy,
                    image: str) -> List[str]:
        args = list(global_args) + ["fetch"]
        if self.config.no_store:
            args.append("--no-store")
        if self.config.store_only:
            args.append("--store-only")
        args.append("--full")
        if self.version >= RKT_VERSION_WITH_PULL_POLICY:
            args.append(f"--pull-policy={PullPolicy(pull_policy).value}")
        args.append(image)
        return args

    def get_path(self) -> Optional[str]:
        """Path of the rkt binary in use, None if it cannot be found."""
        if self.config.path:
            return self.config.path
        return shutil.which("rkt")

    def get_version(self) -> Version:
        """
        Reads the version printed by 'rkt version'.

        Returns:
            Version: The rkt version.
        """
        try:
            output = self.executor.output([self.binary, "version"])
        except CommandError as e:
            raise VersionDetectionError("Failed to get rkt version", e.stdout + e.stderr) from e

        for line in output.splitlines():
            if not line.startswith(_VERSION_PREFIX):
                continue
            token = line[len(_VERSION_PREFIX):].strip()
            if not token:
                raise VersionDetectionError("Failed to read rkt version", line)
            try:
                return Version(token.split()[0])
            except ValueError as e:
                raise VersionDetectionError("Failed to read rkt version", line) from e
        raise VersionDetectionError("Cannot find rkt version from rkt call", output)

    def fetch(self, image: str, pull_policy: PullPolicy = PullPolicy.NEW) -> str:
        """
        Fetches an image into the rkt store.

        Args:
            image: Image name, URL or path of an .aci file.
            pull_policy: Used unless the configuration sets one.

        Returns:
            str: Hash of the image in the store.
        """
        if self.config.pull_policy is not None:
            pull_policy = self.config.pull_policy
        argv = self._fetch_args(self.global_args, pull_policy, image)
        try:
            return self.executor.output(argv).strip()
        except CommandError as e:
            raise FetchError(image) from e

    def fetch_insecure(self, image: str) -> str:
        """
        Fetches an image without signature verification.

        The relaxed arguments are built for this call only.
        """
        global_args = self.global_args
        if not self.config.insecure.has_image():
            global_args = self._prepare_global_args(self.config.insecure.with_image())
        argv = self._fetch_args(global_args, PullPolicy.NEW, image)
        try:
            return self.executor.output(argv).strip()
        except CommandError as e:
            raise FetchError(image) from e

    def get_manifest(self, image: str) -> ImageManifest:
        """
        Reads the manifest of an image in the store.

        Returns:
            ImageManifest: Parsed manifest.
        """
        content = self.cat_manifest(image)
        try:
            return ImageManifest.model_validate_json(content)
        except ValidationError as e:
            raise ManifestUnmarshalError(content) from e

    def cat_manifest(self, image: str) -> str:
        argv = list(self.global_args) + ["image", "cat-manifest", image]
        try:
            return self.executor.output(argv)
        except CommandError as e:
            raise CatManifestError(image) from e

    def has_image(self, image: str) -> bool:
        """Whether the image is already in the rkt store."""
        try:
            self.cat_manifest(image)
        except CatManifestError:
            return False
        return True

    def image_rm(self, images: Union[str, Sequence[str]]) -> Tuple[str, str]:
        images = _as_list(images)
        argv = list(self.global_args) + ["image", "rm"] + images
        try:
            return self.executor.output_and_error(argv)
        except CommandError as e:
            raise ImageRemoveError(images, e.stdout, e.stderr) from e

    def rm_from_file(self, path: str) -> Tuple[str, str]:
        argv = list(self.global_args) + ["rm", "--uuid-file", str(path)]
        try:
            return self.executor.output_and_error(argv)
        except CommandError as e:
            raise ContainerRemoveError(str(path), e.stdout, e.stderr) from e

    def rm(self, uuids: Union[str, Sequence[str]]) -> Tuple[str, str]:
        uuids = _as_list(uuids)
        argv = list(self.global_args) + ["rm"] + uuids
        try:
            return self.executor.output_and_error(argv)
        except CommandError as e:
            raise ContainerRemoveError(" ".join(uuids), e.stdout, e.stderr) from e

    def run(self, args: Sequence[str]) -> None:
        """
        Runs 'rkt run' with its output attached to the terminal.

        Args:
            args: Arguments after 'run'.
        """
        argv = list(self.global_args) + ["run"] + list(args)
        try:
            self.executor.stream(argv)
        except CommandError as e:
            raise RunError(list(args)) from e
