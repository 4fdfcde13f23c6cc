from __future__ import annotations
import argparse
import logging
import os
import sys
from rich.console import Console
from rich.markup import escape
from rich.table import Table

# Import libkfm via relative path add when running from a checkout
THIS_DIR = os.path.dirname(os.path.abspath(__file__))
REPO_ROOT = os.path.abspath(os.path.join(THIS_DIR, "..", ".."))
LIBKFM_ROOT = os.path.join(REPO_ROOT, "libkfm")
if os.path.isdir(LIBKFM_ROOT) and LIBKFM_ROOT not in sys.path:
    sys.path.insert(0, LIBKFM_ROOT)

from libkfm.config import BYTE_ORDERS, ToolConfig
from libkfm.errors import KfmError
from libkfm.header import make_header
from libkfm.log import setup_logging
from libkfm.mapped import map_body, unmap_body
from libkfm.model import KfmFile
from libkfm.patch import PatchFile, apply
from libkfm.reader import decode_kfm
from libkfm.source import converted_path, load_source, save_source
from libkfm.summary import summarize_kfm
from libkfm.text import dumps_yaml, loads_yaml
from libkfm.writer import encode_kfm

console = Console()
log = logging.getLogger("kfmcli")


def _force_byte_order(kfm: KfmFile, byte_order) -> None:
    if byte_order is not None:
        kfm.header.is_little_endian = byte_order == "little"


def cmd_summary(args: argparse.Namespace) -> int:
    s = summarize_kfm(load_source(args.file))
    console.print(f"[bold]File:[/bold] {args.file}")
    console.print(f"[bold]Version:[/bold] {s.version}   [bold]Byte order:[/bold] {s.byte_order}")
    console.print(f"[bold]Model:[/bold] {s.model_path}  (root: {s.model_root})")
    console.print(
        f"[bold]Anims:[/bold] {len(s.anims)}   [bold]Transitions:[/bold] {s.num_trans}   "
        f"[bold]Layer groups:[/bold] {s.num_layer_groups} ({s.num_layers} layers)"
    )

    t = Table(title="Animations")
    t.add_column("Id", justify="right")
    t.add_column("Path", overflow="fold")
    t.add_column("Index", justify="right")
    t.add_column("Trans", justify="right")
    if s.anims:
        for a in s.anims:
            t.add_row(str(a.id), a.path, str(a.index), str(a.num_trans))
    else:
        t.add_row("-", "(none found)", "-", "-")
    console.print(t)

    k = Table(title="Transitions by type")
    k.add_column("Type")
    k.add_column("Count", justify="right")
    for name, n in s.trans_by_type.items():
        k.add_row(name, str(n))
    console.print(k)

    if s.duplicate_anim_ids:
        console.print(f"[yellow]Duplicate anim ids:[/yellow] {s.duplicate_anim_ids}")
    if s.dangling:
        pairs = ", ".join(f"{a}->{b}" for a, b in s.dangling)
        console.print(f"[yellow]Dangling transitions:[/yellow] {pairs}")
    return 0


def cmd_convert(args: argparse.Namespace) -> int:
    kfm = load_source(args.input)
    out = args.output or converted_path(args.input)
    _force_byte_order(kfm, args.byte_order)
    save_source(kfm, out)
    console.print(f"[green]Wrote[/green] {out}")
    return 0


def cmd_patch(args: argparse.Namespace) -> int:
    kfm = load_source(args.src)
    patch_file = PatchFile.load(args.patch)

    # Edit through the id-keyed view, then write back in ascending id order.
    mapped = map_body(kfm.body)
    apply(mapped, patch_file, atomic=args.atomic)
    kfm.body = unmap_body(mapped)

    _force_byte_order(kfm, args.byte_order)
    out = args.output or args.src
    save_source(kfm, out)
    console.print(f"[green]Applied[/green] {len(patch_file.anims)} instruction(s) -> {out}")
    return 0


def cmd_build(args: argparse.Namespace) -> int:
    kfm = load_source(args.input)
    stem = os.path.splitext(os.path.basename(args.input))[0]

    out_dir = args.output_dir
    if out_dir is None:
        out_dir = os.path.dirname(os.path.abspath(args.input))
    elif not os.path.isdir(out_dir):
        raise SystemExit(f"path {out_dir!r} is not a directory")

    # Render the header first so a bad path leaves nothing half written.
    header = make_header(stem, kfm.body.anims)

    _force_byte_order(kfm, args.byte_order)
    kfm_path = os.path.join(out_dir, stem + ".kfm")
    save_source(kfm, kfm_path)

    h_path = os.path.join(out_dir, stem + ".h")
    with open(h_path, "w", encoding="utf-8", newline="") as f:
        f.write(header)

    console.print(f"[green]Wrote[/green] {kfm_path}")
    console.print(f"[green]Wrote[/green] {h_path}")
    return 0


def cmd_verify_roundtrip(args: argparse.Namespace) -> int:
    with open(args.file, "rb") as f:
        data = f.read()
    kfm = decode_kfm(data)
    if args.via_yaml:
        kfm = loads_yaml(dumps_yaml(kfm))
    again = encode_kfm(kfm)
    if again == data:
        console.print("[green]IDENTICAL[/green]")
        return 0

    first = next((i for i, (a, b) in enumerate(zip(data, again)) if a != b), min(len(data), len(again)))
    console.print(f"[red]DIFF[/red] in={len(data)} out={len(again)} bytes, first difference at offset {first}")
    return 1


def build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(prog="kfmcli")
    v = p.add_mutually_exclusive_group()
    v.add_argument("-v", "--verbose", action="store_true", help="Debug logging")
    v.add_argument("-q", "--quiet", action="store_true", help="Only warnings and errors")
    sub = p.add_subparsers(dest="cmd", required=True)

    s = sub.add_parser("summary", help="Print info about a .kfm or .yaml file")
    s.add_argument("file")
    s.set_defaults(fn=cmd_summary)

    c = sub.add_parser("convert", help="Convert between .kfm and .yaml")
    c.add_argument("-i", "--input", required=True)
    c.add_argument("-o", "--output", help="Default: input with .kfm/.yaml swapped")
    c.add_argument("--byte-order", choices=BYTE_ORDERS)
    c.set_defaults(fn=cmd_convert)

    pt = sub.add_parser("patch", help="Apply a patch file to a source file")
    pt.add_argument("-s", "--src", required=True)
    pt.add_argument("-p", "--patch", required=True)
    pt.add_argument("-o", "--output", help="Default: overwrite --src")
    pt.add_argument("--atomic", action="store_true", default=None,
                    help="Leave the source untouched if any instruction fails")
    pt.add_argument("--byte-order", choices=BYTE_ORDERS)
    pt.set_defaults(fn=cmd_patch)

    b = sub.add_parser("build", help="Write <stem>.kfm and the <stem>.h enum header")
    b.add_argument("-i", "--input", required=True)
    b.add_argument("-d", "--output-dir")
    b.add_argument("--byte-order", choices=BYTE_ORDERS)
    b.set_defaults(fn=cmd_build)

    r = sub.add_parser("verify-roundtrip", help="Decode->encode a .kfm and compare bytes")
    r.add_argument("file")
    r.add_argument("--via-yaml", action="store_true", help="Also pass the file through the YAML form")
    r.set_defaults(fn=cmd_verify_roundtrip)

    return p


def main(argv=None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    try:
        cfg = ToolConfig.from_env()
    except ValueError as e:
        raise SystemExit(str(e))
    if args.verbose:
        cfg.log_level = "DEBUG"
    elif args.quiet:
        cfg.log_level = "WARNING"
    setup_logging(cfg.log_level)

    # Flags win over the environment.
    if getattr(args, "byte_order", None) is None and hasattr(args, "byte_order"):
        args.byte_order = cfg.byte_order
    if getattr(args, "atomic", False) is None:
        args.atomic = cfg.atomic_patch

    try:
        return int(args.fn(args))
    except (KfmError, OSError) as e:
        log.debug("command failed", exc_info=True)
        console.print(f"[red]error:[/red] {escape(str(e))}", highlight=False)
        return 1


if __name__ == "__main__":
    raise SystemExit(main())
