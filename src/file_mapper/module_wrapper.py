"""Remote module envelope for Code files.

The remote runtime loads Code files through a CommonJS-style loader. Each
file body sits inside a _main() function registered with __defineModule__,
tagged with the file's remote identifier so require() can resolve it by name:

    function _main(
      module = globalThis.__getCurrentModule(),
      exports = module.exports,
      require = globalThis.require
    ) {
      ...user code...
    }

    __defineModule__(_main, 'utils/helper');
"""

import re

from src.models.remote_file import FileType

MAIN_FUNCTION = re.compile(r'^\s*function\s+_main\s*\(', re.MULTILINE)
DEFINE_MODULE_CALL = re.compile(r'__defineModule__\(\s*_main\s*(?:,\s*([\'"`])[^\'"`]*\1\s*)?\)\s*;?')

# Loader infrastructure; never wrapped
SPECIAL_FILES = {'appsscript', 'CommonJS', '__mcp_gas_run', '__mcp_exec'}
SPECIAL_PREFIXES = ('common-js/',)

WRAPPER_HEADER = (
    "function _main(\n"
    "  module = globalThis.__getCurrentModule(),\n"
    "  exports = module.exports,\n"
    "  require = globalThis.require\n"
    ") {\n"
)


def _quote(name: str) -> str:
    return "'" + name.replace('\\', '\\\\').replace("'", "\\'") + "'"


def define_module_call(name: str) -> str:
    return f"__defineModule__(_main, {_quote(name)});"


def should_wrap(file_type: FileType, name: str) -> bool:
    """Only Code files outside the loader infrastructure get the envelope."""
    if file_type is not FileType.SERVER_JS:
        return False
    if name.startswith(SPECIAL_PREFIXES):
        return False
    return name.split('/')[-1] not in SPECIAL_FILES


def is_wrapped(content: str) -> bool:
    return bool(MAIN_FUNCTION.search(content)) and bool(DEFINE_MODULE_CALL.search(content))


def wrap_module(content: str, name: str) -> str:
    """Wrap content in the module envelope tagged with name.

    Content that already carries the envelope is only re-tagged, so wrapping
    is idempotent and a file renamed locally picks up its new identifier.
    """
    if is_wrapped(content):
        return DEFINE_MODULE_CALL.sub(lambda _: define_module_call(name), content, count=1)

    body = content.strip('\n')
    indented = '\n'.join(f"  {line}" if line else '' for line in body.split('\n'))
    if body:
        indented += '\n'
    return f"{WRAPPER_HEADER}{indented}}}\n\n{define_module_call(name)}\n"


def unwrap_module(content: str) -> str:
    """Return the user code inside the envelope.

    Content is returned unchanged unless the envelope spans the whole file
    (only whitespace before _main and after the __defineModule__ call).
    """
    if not is_wrapped(content):
        return content

    start = MAIN_FUNCTION.search(content)
    if content[:start.start()].strip():
        return content

    footer = None
    for footer in DEFINE_MODULE_CALL.finditer(content):
        pass
    if footer is None or content[footer.end():].strip():
        return content

    lines = content[start.start():footer.start()].split('\n')
    body_start = next((i for i, line in enumerate(lines) if ') {' in line), None)
    if body_start is None:
        return content

    inner = '\n'.join(lines[body_start + 1:]).rstrip()
    if not inner.endswith('}'):
        return content
    body = inner[:-1].rstrip(' \t').strip('\n')

    dedented = '\n'.join(line[2:] if line.startswith('  ') else line for line in body.split('\n'))
    return f"{dedented}\n" if dedented else ''


def wrap_for_remote(content: str, name: str, file_type: FileType) -> str:
    """Return the content to submit for a file of the given type."""
    if should_wrap(file_type, name):
        return wrap_module(content, name)
    return content


def unwrap_from_remote(content: str, name: str, file_type: FileType) -> str:
    """Return the content to mirror locally for a remote file of the given type."""
    if should_wrap(file_type, name):
        return unwrap_module(content)
    return content
