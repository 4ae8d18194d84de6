from rich.pretty import pprint

from eclipt import *


def echo(invocation):
    pprint(invocation)
    return invocation


tool = Command(
    description="Demo tool",
    options={
        "debug": Opt(alias="d", flag=True, description="print debug output"),
    },
    children={
        "copy": Command(echo, description="copy a file", positionals=("source", "target"), options={
            "force": Opt(alias="f", flag=True, description="overwrite the target"),
            "exclude": Opt(alias="x", multi=True, value="glob", description="skip matching files"),
        }),
        "remote": {
            "description": "manage remotes",
            "children": {
                "add": {"action": echo, "positionals": ("name", "url")},
                "list": {"action": echo},
            },
        },
    },
)


if __name__ == '__main__':
    invoke("demo", tool)
