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
Execution of external commands, either captured or streamed to the terminal.
"""
import logging
import subprocess
from typing import List, Tuple

from ..errors import CommandError

logger = logging.getLogger(__name__)


class CommandExecutor:
    """
    Runs external commands to completion.

    Every rkt call goes through one of these three methods, which makes this
    class the seam to replace in tests.
    """

    def output(self, argv: List[str]) -> str:
        """
        Runs a command and returns its standard output.

        Args:
            argv (List[str]): Command and arguments.

        Returns:
            str: Captured stdout.

        Raises:
            CommandError: On non-zero exit, with stdout and stderr attached.
        """
        stdout, _ = self.output_and_error(argv)
        return stdout

    def output_and_error(self, argv: List[str]) -> Tuple[str, str]:
        """
        Runs a command and returns both its standard output and error.

        Args:
            argv (List[str]): Command and arguments.

        Returns:
            Tuple[str, str]: Captured stdout and stderr.
        """
        logger.debug("Running command: %s", " ".join(argv))
        try:
            completed = subprocess.run(
                argv,
                stdout=subprocess.PIPE,
                stderr=subprocess.PIPE,
                text=True,
                encoding="utf-8",
                errors="replace",
                # Avoid shell=True for security reasons (CWE-78)
                shell=False,
            )
        except OSError as e:
            raise CommandError(argv, None, "", str(e)) from e

        if completed.returncode != 0:
            raise CommandError(argv, completed.returncode, completed.stdout, completed.stderr)
        return completed.stdout, completed.stderr

    def stream(self, argv: List[str]) -> None:
        """
        Runs a command attached to the current stdout/stderr.

        Args:
            argv (List[str]): Command and arguments.
        """
        logger.debug("Running command: %s", " ".join(argv))
        try:
            completed = subprocess.run(argv, shell=False)
        except OSError as e:
            raise CommandError(argv, None, "", str(e)) from e

        if completed.returncode != 0:
            raise CommandError(argv, completed.returncode)
