"""
Eclipt help rendering.

Everything here works on a Scope (a command node plus its resolved name and
ancestor path) and returns plain text; printing is left to the console layer
in eclipt.faults.

Layout
    <description>

    Usage:
        tool sub [OPTIONS] <file>

    Options:
        -v, --verbose             be chatty
            --output <path>       write here

    Commands:
        build    compile things
        test     run the suite
"""

INDENT = " " * 4


def definition(option, /):
    """
    Return the definition string of an option: '-a, --name <value>'.

    The alias part is omitted when the option has none; the placeholder is
    omitted for flags.
    """
    text = ("-%s, " % option.alias if option.alias else "") + "--" + option.name
    if not option.flag:
        text += " <%s>" % option.value
    return text


def usage(scope, /):
    """
    Return the usage line of a node: ancestors, name, then the shape of what
    it accepts ([OPTIONS], COMMAND or <positional> placeholders).
    """
    spec = scope.spec
    line = " ".join((*scope.path, scope.name))

    if spec.options:
        line += " [OPTIONS]"

    if not spec.action:
        line += " COMMAND"

    if spec.action and spec.positionals:
        line += " " + " ".join("<%s>" % name for name in spec.positionals)

    return line


def options(spec, /):
    """
    Return the options block, descriptions aligned on the widest definition.
    """
    definitions = []
    for option in spec.options.values():
        definitions.append(((INDENT if not option.alias else "") + definition(option), option.description or ""))

    width = max((len(text) for text, _ in definitions), default=0)

    block = "Options:\n"
    for text, description in definitions:
        block += INDENT + text.ljust(width) + INDENT + description + "\n"
    return block + "\n"


def commands(spec, /):
    """
    Return the commands block, descriptions aligned on the widest name.
    """
    width = max(map(len, spec.children), default=0)

    block = "Commands:\n"
    for name, child in spec.children.items():
        block += INDENT + name.ljust(width) + INDENT + (child.description or "") + "\n"
    return block + "\n"


def full(scope, /):
    """
    Return the complete help text shown for --help.
    """
    spec = scope.spec
    text = "\n"

    if spec.description:
        text += spec.description + "\n\n"

    text += "Usage:\n" + INDENT + usage(scope) + "\n\n"

    if spec.options:
        text += options(spec)

    if spec.children:
        text += commands(spec)

    return text


def brief(scope, /, *, listing=False):
    """
    Return the short help appended under a failure message.

    listing adds the commands block (used when the failure is about choosing
    a command).
    """
    text = "\nUsage:\n" + INDENT + usage(scope) + "\n\n"

    if listing and scope.spec.children:
        text += commands(scope.spec)

    return text + "For more information try --help\n"


__all__ = (
    "definition",
    "usage",
    "options",
    "commands",
    "full",
    "brief",
)
