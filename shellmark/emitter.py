"""
Shell command emission for shellmark.

A child process cannot change its parent shell's directory, so the browser's
outcome is printed as a line of shell syntax that a wrapper function
evaluates. Each dialect knows how to quote a path and how to spell
"change directory" and "open in editor"; ``emit`` picks the right one.
``plug`` produces the wrapper function itself.

Dialects:
- plain: the bare path, for scripting
- posix: sh, bash, zsh
- fish
- powershell
"""
import re
import shlex
from dataclasses import dataclass
from typing import Dict, List, Optional, Union

from shellmark.constants import APP_NAME, DEFAULT_ALIAS
from shellmark.errors import ValidationError

ALIAS_PATTERN = re.compile(r"^[A-Za-z_][A-Za-z0-9_-]*$")


@dataclass(frozen=True)
class ChangeDir:
    """Change the calling shell's working directory."""
    path: str


@dataclass(frozen=True)
class OpenInEditor:
    """
    Open a file in an editor from the calling shell.

    ``editor`` is a command line such as ``nvim`` or ``code -w``; None when no
    editor is configured, in which case only a notice is emitted.
    """
    path: str
    editor: Optional[str] = None


Outcome = Optional[Union[ChangeDir, OpenInEditor]]

NO_EDITOR_NOTICE = f"{APP_NAME}: no editor configured, set $EDITOR or editor in config.toml"


def split_editor(editor: str) -> List[str]:
    """
    Split an editor command line into words.

    Raises:
        ValidationError: If the command line is empty or badly quoted
    """
    try:
        words = shlex.split(editor)
    except ValueError as e:
        raise ValidationError(f"Invalid editor command {editor!r}: {e}")
    if not words:
        raise ValidationError("Editor command must not be empty")
    return words


class Dialect:
    """Quoting and command syntax of one target shell."""

    name: str = ""
    plug_template: Optional[str] = None

    def quote(self, path: str) -> str:
        raise NotImplementedError

    def cd_command(self, path: str) -> str:
        raise NotImplementedError

    def notice_command(self, message: str) -> str:
        raise NotImplementedError

    def edit_command(self, path: str, editor: Optional[str] = None) -> str:
        """Run ``editor`` on ``path``; every word is quoted so nothing is expanded."""
        if not editor:
            return self.notice_command(NO_EDITOR_NOTICE)
        words = [self.quote(word) for word in split_editor(editor)]
        return self.call_command(words + [self.quote(path)])

    def call_command(self, quoted_words: List[str]) -> str:
        return " ".join(quoted_words)

    def plug(self, name: str) -> str:
        if self.plug_template is None:
            raise ValidationError(f"No shell integration for output type: {self.name}")
        return self.plug_template.replace("{name}", name).replace("{binary}", APP_NAME)


class PlainDialect(Dialect):
    """The raw path, one line, no shell syntax."""

    name = "plain"

    def quote(self, path: str) -> str:
        return path

    def cd_command(self, path: str) -> str:
        return path

    def edit_command(self, path: str, editor: Optional[str] = None) -> str:
        return path


class PosixDialect(Dialect):
    name = "posix"
    plug_template = """\
{name}() {
    if ! command -v {binary} >/dev/null 2>&1; then
        echo "{binary} is not in PATH" >&2
        return 1
    fi

    local out
    out="$(command {binary} --out posix "$@")" || return $?

    if [ -n "$out" ]; then
        eval "$out"
    fi
}
"""

    def quote(self, path: str) -> str:
        return shlex.quote(path)

    def cd_command(self, path: str) -> str:
        return f"cd -- {self.quote(path)}"

    def notice_command(self, message: str) -> str:
        return f"echo {self.quote(message)} >&2"


class FishDialect(Dialect):
    name = "fish"
    plug_template = """\
function {name}
    if not type -q {binary}
        echo "{binary} is not in PATH" >&2
        return 1
    end

    set -l out (command {binary} --out fish $argv | string collect)
    or return $status

    if test -n "$out"
        eval $out
    end
end
"""

    def quote(self, path: str) -> str:
        # Inside fish single quotes only \\ and \' are escapes
        return "'" + path.replace("\\", "\\\\").replace("'", "\\'") + "'"

    def cd_command(self, path: str) -> str:
        return f"cd {self.quote(path)}"

    def notice_command(self, message: str) -> str:
        return f"echo {self.quote(message)} >&2"


class PowerShellDialect(Dialect):
    name = "powershell"
    plug_template = """\
function {name} {
    if (-not (Get-Command {binary} -ErrorAction SilentlyContinue)) {
        Write-Error "{binary} is not in PATH"
        return
    }

    $out = (& {binary} --out powershell @args) -join "`n"

    if ($out) {
        Invoke-Expression $out
    }
}
"""

    # PowerShell treats typographic single quotes as quote characters too
    SINGLE_QUOTES = ("'", "‘", "’", "‚", "‛")

    def quote(self, path: str) -> str:
        quoted = []
        for c in path:
            quoted.append(c + c if c in self.SINGLE_QUOTES else c)
        return "'" + "".join(quoted) + "'"

    def cd_command(self, path: str) -> str:
        return f"Push-Location -LiteralPath {self.quote(path)}"

    def notice_command(self, message: str) -> str:
        return f"Write-Warning {self.quote(message)}"

    def call_command(self, quoted_words: List[str]) -> str:
        return "& " + " ".join(quoted_words)


DIALECTS: Dict[str, Dialect] = {
    d.name: d for d in (PlainDialect(), PosixDialect(), FishDialect(), PowerShellDialect())
}


def get_dialect(name: Union[str, Dialect]) -> Dialect:
    """
    Look up a dialect by name.

    Raises:
        ValidationError: If the dialect is unknown
    """
    if isinstance(name, Dialect):
        return name
    dialect = DIALECTS.get(name)
    if dialect is None:
        raise ValidationError(
            f"Unexpected out: {name}. Possible values are: {', '.join(DIALECTS)}"
        )
    return dialect


def emit(outcome: Outcome, dialect: Union[str, Dialect]) -> str:
    """
    Render an outcome as a command in the given dialect.

    Args:
        outcome: ChangeDir, OpenInEditor, or None for a cancelled session
        dialect: Dialect or dialect name

    Returns:
        One line of shell syntax, or an empty string when there is nothing to do
    """
    dialect = get_dialect(dialect)

    if outcome is None or not outcome.path:
        return ""
    if isinstance(outcome, ChangeDir):
        return dialect.cd_command(outcome.path)
    if isinstance(outcome, OpenInEditor):
        return dialect.edit_command(outcome.path, outcome.editor)
    raise TypeError(f"Unknown outcome: {outcome!r}")


def plug(dialect: Union[str, Dialect], name: str = DEFAULT_ALIAS) -> str:
    """
    Shell integration snippet defining ``name`` as a wrapper around browse.

    Raises:
        ValidationError: If the alias name is not a valid function name or
            the dialect has no integration
    """
    if not name or not ALIAS_PATTERN.match(name):
        raise ValidationError(f"Invalid alias name: {name!r}")
    return get_dialect(dialect).plug(name)
