from __future__ import annotations

from pathlib import Path
from typing import Dict, Sequence

from .config import SyncConfig
from .errors import GenerationError, SyncError
from .runner import CommandRunner


class MappingGenerator:
    """Drives the external mapping generator script.

    Contract of the script: ``run <module>`` writes the module's index template
    to its templated path; ``down`` releases whatever it started (containers).
    """

    def __init__(self, *, runner: CommandRunner, config: SyncConfig, source_dir: Path):
        self.runner = runner
        self.config = config
        self.source_dir = Path(source_dir)

    def _script(self) -> str:
        return str(self.source_dir / self.config.generator_script)

    def run(self, module: str) -> Path:
        self.runner.run(
            ["bash", self._script(), "run", module],
            cwd=self.source_dir,
            timeout=self.config.generator_timeout,
        )
        artifact = self.config.artifact_path(self.source_dir, module)
        if not artifact.is_file():
            raise GenerationError(f"generator did not produce {artifact} for module {module}")
        print(f"[GENERATOR] Processed ECS module: {module}")
        return artifact

    def down(self) -> None:
        self.runner.run(
            ["bash", self._script(), "down"],
            cwd=self.source_dir,
            timeout=self.config.command_timeout,
        )
        print("[GENERATOR] Generator torn down")

    def _down_after_failure(self) -> None:
        # The generation error is what propagates; a teardown error is only reported.
        try:
            self.down()
        except (SyncError, OSError) as e:
            print(f"[GENERATOR][WARN] teardown after failure also failed: {e}")

    def generate_all(self, modules: Sequence[str]) -> Dict[str, Path]:
        """Generate every module in order, honouring the teardown policy.

        Any failure aborts the whole batch. Teardown is still attempted.
        """
        per_module = self.config.teardown == "per_module"
        artifacts: Dict[str, Path] = {}
        failed = False
        try:
            for m in modules:
                try:
                    artifacts[m] = self.run(m)
                except BaseException:
                    failed = True
                    if per_module:
                        self._down_after_failure()
                    raise
                if per_module:
                    self.down()
        finally:
            if not per_module:
                if failed:
                    self._down_after_failure()
                else:
                    self.down()
        return artifacts
