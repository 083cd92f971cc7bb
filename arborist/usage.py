"""
Arborist usage renderer: human-readable help for one command.

render(command) returns a rich renderable made of up to four sections:

    usage:
     <usage line, or the command name>

    <long help, falling back to the short help>

    subcommands:
      <name (aliases)>  <short help>

    flags:
      -<name> <default>  <description>

Only the command it is given is described (never the whole tree), so a single
invocation prints at most one usage block.

Customization
- Define a mapping named __styles__ in __main__ to override any palette entry.
- Styles are applied only when the command is colorful.
- When the command is fancy, the block is wrapped in a titled panel.
"""
from rich.console import Group
from rich.panel import Panel
from rich.table import Table
from rich.text import Text

palette = {
    # === Head sections ===
    "usage-label": "bold #00E6FF",  # CYAN → signature info color
    "usage-section": "bold #36C5F0",  # SKY-BLUE → softer than cyan
    "description-section": "italic #A3A3A3",  # Neutral gray

    # === Sections ===
    "group-label": "bold #FFFFFF",  # Pure white headers
    "children": "bold #36C5F0",  # Sky-blue subcommands
    "aliases": "#36C5F0 dim",
    "children-description": "#9CA3AF",
    "flag-name": "bold #22C55E",  # GREEN for flags
    "flag-default": "bold #FFD600",  # AMBER for defaults
    "flag-description": "#9CA3AF",  # Muted gray

    # === Fancy panel ===
    "panel-title": "bold #FF4D94",  # Magenta branding
}


def render(command, /):
    """
    Build the usage block of `command`.

    Reads
    - usage/name, details/descr, children (name, aliases, descr), flags (synopsis, descr),
      colorful and fancy.

    Returns
    - rich.console.Group (or a Panel around it when fancy).
    """
    styles = palette | getattr(__import__("__main__"), "__styles__", {})

    def text(fragment, style=""):
        # Normalize to Rich Text; drop styling entirely when not colorful.
        if isinstance(fragment, Text):
            return fragment.copy() if command.colorful else Text(fragment.plain)
        return Text(str(fragment), styles.get(style, "") if command.colorful else "")

    def section(label):
        return Text.assemble(text(label, "group-label"), ":")

    renders = [
        section("usage"),
        Text.assemble(" ", text(command.usage or command.name, "usage-section")),
    ]

    if details := command.details or command.descr:
        renders.append(Text(""))
        renders.append(text(details, "description-section"))

    if command.children:
        table = Table.grid(padding=(0, 2))
        for child in command.children:
            names = Text.assemble("  ", text(child.name, "children"))
            if child.aliases:
                names.append_text(Text.assemble(" (", text(", ".join(child.aliases), "aliases"), ")"))
            table.add_row(names, text(child.descr or "", "children-description"))
        renders.extend((Text(""), section("subcommands"), table))

    if flags := list(command.flags):
        table = Table.grid(padding=(0, 2))
        for flag in flags:
            name, _, default = flag.synopsis.partition(" ")
            synopsis = Text.assemble("  ", text(name, "flag-name"))
            if default:
                synopsis.append_text(Text.assemble(" ", text(default, "flag-default")))
            table.add_row(synopsis, text(flag.descr or "", "flag-description"))
        renders.extend((Text(""), section("flags"), table))

    renderable = Group(*renders)

    if command.fancy:
        renderable = Panel(
            renderable,
            title=text(f"[ {command.name} help ]".upper(), "panel-title"),
            title_align="left",
        )

    return renderable


__all__ = (
    "render",
)
