#!/usr/bin/env python3
"""執行所有格式化、靜態檢查與測試。

依序執行 Black、isort、Ruff、Pylint 與 pytest，最後輸出總結。
"""

from pathlib import Path
import subprocess
import sys

PACKAGES = ["app", "core", "infrastructure"]

CHECKS: list[tuple[list[str], str]] = [
    (["python", "-m", "black", ".", "--check"], "Black 格式化檢查"),
    (["python", "-m", "isort", ".", "--check-only"], "isort 匯入排序檢查"),
    (["python", "-m", "ruff", "check", "."], "Ruff 靜態檢查"),
    (["python", "-m", "pylint", *PACKAGES, "main.py"], "Pylint 靜態分析"),
    (["python", "-m", "pytest", "-q"], "pytest 測試"),
]


def run_check(cmd: list[str], description: str) -> tuple[bool, str]:
    """執行單一檢查，返回 (是否成功, 輸出)。"""
    print(f"\n{'=' * 60}\n{description}: {' '.join(cmd)}\n{'=' * 60}")
    try:
        result = subprocess.run(
            cmd, capture_output=True, text=True, check=False, cwd=Path(__file__).parent
        )
    except OSError as e:
        print(f"❌ 執行錯誤: {e}")
        return False, str(e)

    output = (result.stdout + result.stderr).strip()
    print("✅ 成功" if result.returncode == 0 else "❌ 失敗")
    if output:
        print(output)
    return result.returncode == 0, output


def main() -> None:
    """依序執行所有檢查並以結果設定退出碼。"""
    results = [(description, run_check(cmd, description)[0]) for cmd, description in CHECKS]

    print(f"\n{'=' * 60}\n總結報告\n{'=' * 60}")
    for description, success in results:
        print(f"{description}: {'✅ 通過' if success else '❌ 失敗'}")

    all_passed = all(success for _, success in results)
    print(f"\n整體結果: {'✅ 全部通過' if all_passed else '❌ 有錯誤'}")
    sys.exit(0 if all_passed else 1)


if __name__ == "__main__":
    main()
