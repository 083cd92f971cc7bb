from rich.pretty import pprint

from arborist import *

__prog__ = "objectctl"

root = Command(
    "objectctl [flags] <subcommand>",
    descr="manage objects in a store",
    shell=True,
    colorful=True,
)
root.flags.boolean("verbose", descr="print every step")


@root.command("list [flags] [<prefix>]", validator=maxargs(1))
def listing(context, args):
    """List the objects, optionally under a prefix."""
    prefix = args[0] if args else ""
    for name in ("alpha", "beta", "gamma"):
        if name.startswith(prefix):
            print(name)


store = Command("store", root, aliases=["s"], descr="low-level store operations")
store.flags.integer("replicas", 1, "copies to keep")


@store.command("put [flags] <name> <value>", validator=exactargs(2))
def put(context, args):
    """Write one object."""
    if root.flags["verbose"]:
        print("replicas:", store.flags["replicas"])
    print("%s = %s" % tuple(args))


@store.command("mode <mode>", validator=combine(exactargs(1), validargs(["fast", "safe"])))
def mode(context, args):
    """Switch the store mode."""
    print("mode:", args[0])


if __name__ == '__main__':
    pprint(root)
    invoke(root)
