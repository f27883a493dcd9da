"""
Shared fixtures: a fake rkt executor and a Home built on it.
"""
import pytest

from podsmith.BUILDERS.home import Home
from podsmith.BUILDERS.internal_images import AssetStore, BUILDER_ASSET, TESTER_ASSET
from podsmith.MODELS.runtime_config import HomeConfig, RuntimeConfig
from podsmith.REGISTRY.rkt_client import RktClient
from podsmith.RUNNERS.process_runner import CommandExecutor
from podsmith.errors import CommandError


class FakeExecutor(CommandExecutor):
    """
    Records every command and answers from canned outputs keyed by subcommand
    ('version', 'fetch', 'image cat-manifest', 'image rm', 'rm', 'run').
    """

    def __init__(self, version="1.30.0"):
        self.calls = []
        self.version_output = f"rkt Version: {version}\nappc Version: 0.8.11\nGo Version: go1.7.4\n"
        self.outputs = {}
        self.failures = {}
        self.on_run = None

    @staticmethod
    def key(argv):
        words = [a for a in argv[1:] if not a.startswith("--")]
        if words[0] == "image":
            return " ".join(words[:2])
        return words[0]

    def calls_for(self, key):
        return [c for c in self.calls if self.key(c) == key]

    def output_and_error(self, argv):
        self.calls.append(list(argv))
        key = self.key(argv)
        if key in self.failures:
            stdout, stderr = self.failures[key]
            raise CommandError(list(argv), 1, stdout, stderr)
        if key == "version":
            return self.version_output, ""
        return self.outputs.get(key, ""), ""

    def stream(self, argv):
        self.calls.append(list(argv))
        if self.on_run:
            self.on_run(argv)
        if "run" in self.failures:
            raise CommandError(list(argv), 1)


@pytest.fixture
def make_executor():
    """FakeExecutor factory, for tests needing a specific rkt version."""
    return FakeExecutor


@pytest.fixture
def executor(make_executor):
    return make_executor()


@pytest.fixture
def assets_dir(tmp_path):
    directory = tmp_path / "bindata"
    directory.mkdir()
    (directory / BUILDER_ASSET).write_bytes(b"builder-aci")
    (directory / TESTER_ASSET).write_bytes(b"tester-aci")
    return directory


@pytest.fixture
def make_home(executor, assets_dir):
    def make(config=None):
        config = config or HomeConfig()
        rkt = RktClient(config.rkt, executor=executor)
        return Home(config=config, rkt=rkt, assets=AssetStore(str(assets_dir)))
    return make


@pytest.fixture
def home(make_home):
    return make_home()
