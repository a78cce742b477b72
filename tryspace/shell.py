"""Shell wrapper installation for ``cd``-on-exit integration.

The wrapper runs ``tryspace``, captures stdout (the TUI draws on stderr) and
evaluates the single instruction line it prints.
"""

from __future__ import annotations

import os
import sys
from collections.abc import Mapping
from dataclasses import dataclass
from pathlib import Path

from platformdirs import user_config_dir

from .config import APP_NAME

SUPPORTED_SHELLS = ("bash", "zsh", "fish", "powershell", "nushell")
INTEGRATION_COMMENT = f"# {APP_NAME} integration"

_POSIX_WRAPPER = f"""{APP_NAME}() {{
    local output
    output=$(command {APP_NAME} "$@")
    if [ -n "$output" ]; then
        eval "$output"
    fi
}}
"""

_FISH_WRAPPER = f"""function {APP_NAME}
    set command (command {APP_NAME} $argv | string collect)
    if test -n "$command"
        eval $command
    end
end
"""

_POWERSHELL_WRAPPER = f"""function {APP_NAME} {{
    $command = (& (Get-Command {APP_NAME} -CommandType Application | Select-Object -First 1) @args)
    if ($command) {{
        Invoke-Expression $command
    }}
}}
"""

# Nushell cannot eval a string; the wrapper parses the `cd '<path>'` line.
_NUSHELL_WRAPPER = f"""def --env --wrapped {APP_NAME} [...args] {{
    let output = (^{APP_NAME} ...$args)
    if ($output | is-not-empty) {{
        if ($output | str starts-with 'cd ') {{
            let path = ($output | str substring 3.. | str trim --char "'")
            cd $path
        }} else {{
            nu -c $output
        }}
    }}
}}
"""


@dataclass(frozen=True)
class ShellSetup:
    """Where a wrapper lives and which startup file should source it."""

    wrapper_path: Path
    wrapper: str
    rc_path: Path | None
    source_line: str | None
    create_rc: bool = False


def detect_shell(environ: Mapping[str, str] | None = None) -> str | None:
    """Guess the user's shell from ``NU_VERSION`` and ``$SHELL``."""
    env = os.environ if environ is None else environ
    if env.get("NU_VERSION"):
        return "nushell"
    shell_name = Path(env.get("SHELL") or "").name.lower()
    if shell_name in {"bash", "zsh", "fish"}:
        return shell_name
    if shell_name in {"pwsh", "powershell"}:
        return "powershell"
    if shell_name == "nu":
        return "nushell"
    return None


def _powershell_profile(home: Path) -> Path:
    modern = home / "Documents" / "PowerShell" / "Microsoft.PowerShell_profile.ps1"
    legacy = home / "Documents" / "WindowsPowerShell" / "Microsoft.PowerShell_profile.ps1"
    if not modern.exists() and legacy.exists():
        return legacy
    return modern


def shell_setup(shell: str, *, home: Path, config_root: Path) -> ShellSetup:
    """Describe the install plan for ``shell`` under the given directories."""
    app_dir = config_root / APP_NAME
    if shell == "fish":
        return ShellSetup(
            wrapper_path=config_root / "fish" / "functions" / f"{APP_NAME}.fish",
            wrapper=_FISH_WRAPPER,
            rc_path=None,
            source_line=None,
        )
    if shell in {"bash", "zsh"}:
        wrapper_path = app_dir / f"{APP_NAME}.{shell}"
        return ShellSetup(
            wrapper_path=wrapper_path,
            wrapper=_POSIX_WRAPPER,
            rc_path=home / f".{shell}rc",
            source_line=f"source '{wrapper_path}'",
        )
    if shell == "powershell":
        wrapper_path = app_dir / f"{APP_NAME}.ps1"
        return ShellSetup(
            wrapper_path=wrapper_path,
            wrapper=_POWERSHELL_WRAPPER,
            rc_path=_powershell_profile(home),
            source_line=f". '{wrapper_path}'",
            create_rc=True,
        )
    if shell == "nushell":
        wrapper_path = app_dir / f"{APP_NAME}.nu"
        return ShellSetup(
            wrapper_path=wrapper_path,
            wrapper=_NUSHELL_WRAPPER,
            rc_path=config_root / "nushell" / "config.nu",
            source_line=f"source '{wrapper_path}'",
        )
    raise ValueError(f"unsupported shell: {shell!r}")


def install_shell_integration(
    shell: str,
    *,
    home: Path | None = None,
    config_root: Path | None = None,
    stream=None,
) -> Path:
    """Write the wrapper for ``shell`` and hook it into the startup file once.

    Progress messages go to ``stream`` (stderr by default). Returns the
    wrapper path. Raises ``OSError`` when files cannot be written.
    """
    out = sys.stderr if stream is None else stream
    home = home if home is not None else Path.home()
    config_root = config_root if config_root is not None else Path(user_config_dir(appauthor=False))
    plan = shell_setup(shell, home=home, config_root=config_root)

    plan.wrapper_path.parent.mkdir(parents=True, exist_ok=True)
    plan.wrapper_path.write_text(plan.wrapper, encoding="utf-8")
    print(f"{shell} wrapper written to {plan.wrapper_path}", file=out)

    if plan.rc_path is None or plan.source_line is None:
        print("Restart your shell to apply changes.", file=out)
        return plan.wrapper_path

    if plan.rc_path.exists():
        content = plan.rc_path.read_text(encoding="utf-8", errors="replace")
        if plan.source_line in content:
            print(f"Configuration already present in {plan.rc_path}", file=out)
            return plan.wrapper_path
        with plan.rc_path.open("a", encoding="utf-8") as handle:
            handle.write(f"\n{INTEGRATION_COMMENT}\n{plan.source_line}\n")
        print(f"Added configuration to {plan.rc_path}", file=out)
    elif plan.create_rc:
        plan.rc_path.parent.mkdir(parents=True, exist_ok=True)
        plan.rc_path.write_text(f"{INTEGRATION_COMMENT}\n{plan.source_line}\n", encoding="utf-8")
        print(f"Created {plan.rc_path}", file=out)
    else:
        print(f"Add this line to {plan.rc_path}:", file=out)
        print(plan.source_line, file=out)
        return plan.wrapper_path
    print("Restart your shell to apply changes.", file=out)
    return plan.wrapper_path


__all__ = [
    "SUPPORTED_SHELLS",
    "ShellSetup",
    "detect_shell",
    "install_shell_integration",
    "shell_setup",
]
