from __future__ import annotations

import re
from pathlib import Path

SPEC = Path(__file__).resolve().parents[1] / "packaging" / "rpm" / "wazuh-indexer.rpm.spec"


def _section(text: str, name: str) -> str:
    m = re.search(r"^%" + name + r"\n(.*?)(?=^%(?:pre|post|preun|files|changelog)\b)", text, re.MULTILINE | re.DOTALL)
    assert m, f"missing %{name} section"
    return m.group(1)


def test_lifecycle_hooks_present() -> None:
    text = SPEC.read_text(encoding="utf-8")

    pre = _section(text, "pre")
    assert "systemctl --no-reload stop %{name}.service" in pre
    assert "useradd -r -g %{name}" in pre

    post = _section(text, "post")
    assert "grep -q '## OpenSearch Performance Analyzer'" in post
    assert "install-demo-certificates.sh" in post
    assert "systemctl daemon-reload" in post

    preun = _section(text, "preun")
    assert "%{name}-performance-analyzer.service" in preun


def test_config_files_are_noreplace() -> None:
    text = SPEC.read_text(encoding="utf-8")
    for f in ("jvm.options", "opensearch.yml", "log4j2.properties"):
        assert re.search(r"^%config\(noreplace\) %attr\(660, %\{name\}, %\{name\}\) %\{config_dir\}/" + re.escape(f) + "$", text, re.MULTILINE), f
    assert "%defattr(640, %{name}, %{name}, 750)" in text


def test_license_notice_and_release_history_kept() -> None:
    text = SPEC.read_text(encoding="utf-8")
    assert text.startswith("# Copyright OpenSearch Contributors\n# SPDX-License-Identifier: Apache-2.0\n")
    assert "licensed under the Apache-2.0 license or a\n# compatible open source license." in text

    changelog = text.split("%changelog\n", 1)[1]
    entries = re.findall(r"^\* .* - (\d+\.\d+\.\d+)$", changelog, re.MULTILINE)
    assert entries[0] == "5.0.0"
    assert entries[-1] == "4.3.0"
    assert "4.10.1" in entries
    assert changelog.rstrip().endswith("- Initial package")
