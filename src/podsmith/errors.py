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
Exceptions raised by podsmith.

Every error carries a dict of contextual fields (image, path, raw output...)
rendered after the message, so a single line tells which rkt call and which
input failed.
"""
from typing import Any, Dict, List, Optional


class PodsmithError(Exception):
    """Base class for all podsmith errors."""

    def __init__(self, message: str, **fields: Any):
        super().__init__(message)
        self.message = message
        self.fields: Dict[str, Any] = fields

    def __str__(self) -> str:
        parts = [self.message]
        for key, value in self.fields.items():
            if value is None or value == "":
                continue
            parts.append(f"{key}={value}")
        if self.__cause__ is not None:
            parts.append(f"cause: {self.__cause__}")
        return " ".join(parts)


class ConfigError(PodsmithError):
    """Invalid configuration file or option."""


class CommandError(PodsmithError):
    """An external command exited with a non-zero code or could not start."""

    def __init__(self, argv: List[str], exit_code: Optional[int],
                 stdout: str = "", stderr: str = ""):
        super().__init__(
            "Command failed",
            command=" ".join(argv),
            exit_code=exit_code,
            stdout=stdout.strip(),
            stderr=stderr.strip(),
        )
        self.argv = argv
        self.exit_code = exit_code
        self.stdout = stdout
        self.stderr = stderr


# rkt client errors

class VersionDetectionError(PodsmithError):
    """rkt version could not be read from the binary."""

    def __init__(self, message: str, output: str = ""):
        super().__init__(message, content=output.strip())
        self.output = output


class UnsupportedVersionError(PodsmithError):
    def __init__(self, current, required):
        super().__init__(
            "Unsupported version of rkt", current=current, required=f">={required}"
        )
        self.current = current
        self.required = required


class FetchError(PodsmithError):
    def __init__(self, image: str):
        super().__init__("Failed to fetch image", image=image)
        self.image = image


class CatManifestError(PodsmithError):
    def __init__(self, image: str):
        super().__init__("Failed to cat manifest", image=image)
        self.image = image


class ManifestUnmarshalError(PodsmithError):
    def __init__(self, content: str):
        super().__init__("Failed to unmarshal manifest received from rkt", content=content)
        self.content = content


class ImageRemoveError(PodsmithError):
    def __init__(self, images: List[str], stdout: str = "", stderr: str = ""):
        super().__init__(
            "Failed to remove images",
            images=" ".join(images), stdout=stdout.strip(), stderr=stderr.strip(),
        )
        self.images = images
        self.stdout = stdout
        self.stderr = stderr


class ContainerRemoveError(PodsmithError):
    def __init__(self, target: str, stdout: str = "", stderr: str = ""):
        super().__init__(
            "Failed to remove containers",
            target=target, stdout=stdout.strip(), stderr=stderr.strip(),
        )
        self.target = target
        self.stdout = stdout
        self.stderr = stderr


class RunError(PodsmithError):
    def __init__(self, args: List[str]):
        super().__init__("Run failed", args=" ".join(args))
        self.args_list = args


# orchestration errors

class ManifestReadError(PodsmithError):
    """A manifest file is missing, unreadable or invalid."""

    def __init__(self, path: str, reason: str = ""):
        super().__init__("Failed to read manifest", path=path, reason=reason)
        self.path = path


class DuplicateAppNameError(PodsmithError):
    def __init__(self, pod: str, name: str):
        super().__init__("Duplicate app name in pod manifest", pod=pod, app=name)
        self.pod = pod
        self.name = name


class AssetNotFoundError(PodsmithError):
    def __init__(self, asset: str, directory: str):
        super().__init__("Cannot find internal aci", asset=asset, dir=directory)
        self.asset = asset


class InternalImageImportError(PodsmithError):
    def __init__(self, image: str):
        super().__init__("Failed to import internal image to rkt", image=image)
        self.image = image


class BuildError(PodsmithError):
    def __init__(self, aci: str, reason: str = ""):
        super().__init__("Build failed", aci=aci, reason=reason)
        self.aci = aci


class TestFailedError(PodsmithError):
    __test__ = False

    def __init__(self, aci: str, pod: Optional[str] = None):
        super().__init__("Tests failed", aci=aci, pod=pod)
        self.aci = aci
        self.pod = pod
