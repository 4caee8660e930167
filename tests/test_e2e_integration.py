"""
End-to-End Integration Tests for swiftstyle

Tests that drive a small Swift project through the whole pipeline:
- Discovery + configuration + batch analysis
- Fixing + re-analysis until the tree is clean of fixable violations
- Reporting the same run as text, JSON and SARIF
"""

import asyncio
import json
from pathlib import Path

import pytest

from swiftstyle_core import (
    FixApplier,
    RuleEngine,
    RuleRegistry,
    StyleAnalyzer,
    load_config,
)
from swiftstyle_core.reporter import format_text, to_json, to_sarif

APP_DELEGATE = """\
import UIKit
import Foundation

/// Application entry point.
@main
public class AppDelegate: UIResponder {
    var window: UIWindow?

    /// Starts the application.
    public func start()
    {
        window!.makeKeyAndVisible()
        let count = 1; print(count)
    }
}
"""

USER_MODEL = """\
import Foundation

/// A user.
public struct User {
    /// Display name.
    public let name: String
    /// Identifier.
    public let userId: Int
}
"""

LOGIN_TESTS = """\
@testable import App
import XCTest

final class LoginTests: XCTestCase {
    func testLogin() {
        let user = makeUser()!
        XCTAssertEqual(user.name, "a")
    }
}
"""

CONFIG = """\
version: "1"
exclude:
  - "Vendor/**"
rules:
  single-primary-type:
    enabled: false
"""


@pytest.fixture
def project(tmp_path: Path) -> Path:
    files = {
        ".swiftstyle.yml": CONFIG,
        "Sources/App/AppDelegate.swift": APP_DELEGATE,
        "Sources/App/User.swift": USER_MODEL,
        "Tests/AppTests/LoginTests.swift": LOGIN_TESTS,
        "Vendor/Lib/Legacy.swift": "class legacy_thing {}\n",
        ".build/checkouts/Dep.swift": "class dep_thing {}\n",
    }
    for relative, text in files.items():
        path = tmp_path / relative
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(text, encoding="utf-8")
    return tmp_path


def run(root: Path):
    config = load_config(root)
    engine = RuleEngine(RuleRegistry.from_config(config.rules))
    analyzer = StyleAnalyzer(engine, config, jobs=2)
    return engine, asyncio.run(analyzer.analyze_paths([root]))


class TestLintPipeline:
    """Discovery, configuration and analysis together."""

    def test_discovers_configured_files(self, project: Path) -> None:
        _, results = run(project)
        names = [Path(a.path).name for a in results.analyses]
        assert names == ["AppDelegate.swift", "User.swift", "LoginTests.swift"]

    def test_violations_per_file(self, project: Path) -> None:
        _, results = run(project)
        by_file = {Path(a.path).name: [v.rule_id for v in a.violations] for a in results.analyses}
        assert by_file["AppDelegate.swift"] == [
            "import-order",
            "access-level",
            "brace-style",
            "force-unwrap",
            "one-statement-per-line",
        ]
        assert by_file["User.swift"] == ["acronym-casing"]
        # Test files are allowlisted for force unwraps; the import groups are out of order.
        assert by_file["LoginTests.swift"] == ["import-order", "access-level", "access-level"]
        assert results.exit_code() == 1

    def test_reports_agree(self, project: Path) -> None:
        engine, results = run(project)
        text = format_text(results.violations).splitlines()
        data = json.loads(to_json(results.violations, files=results.files_analyzed))
        sarif = to_sarif(results.violations, rules=engine.registry.rules)
        assert len(text) == len(data["violations"]) == len(sarif["runs"][0]["results"])
        assert [v["rule_id"] for v in data["violations"]] == [
            r["ruleId"] for r in sarif["runs"][0]["results"]
        ]
        assert data["summary"]["files"] == 3


class TestFixPipeline:
    """Fixing a tree and analyzing it again."""

    def test_fix_then_relint(self, project: Path) -> None:
        engine, results = run(project)
        applier = FixApplier(engine)
        for analysis in results.analyses:
            outcome = applier.fix(analysis)
            assert outcome.diagnostics == ()
            if outcome.changed:
                Path(outcome.path).write_text(outcome.source, encoding="utf-8")

        fixed = (project / "Sources/App/AppDelegate.swift").read_text()
        assert "    internal var window: UIWindow?\n" in fixed
        assert "    public func start() {\n" in fixed
        assert "        window?.makeKeyAndVisible()\n" in fixed
        assert "        let count = 1\n        print(count)\n" in fixed

        _, after = run(project)
        remaining = sorted({v.rule_id for v in after.violations})
        # Import order and acronyms have no safe automatic fix.
        assert remaining == ["acronym-casing", "import-order"]
        assert after.exit_code() == 0
