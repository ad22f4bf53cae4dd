#!/usr/bin/env python3
"""
bitkit — Command Line Front End for bitcomp
===========================================

One CLI for the memory-image workflow:
    bitkit run      — Run an image and print what the printer received
    bitkit disasm   — Disassemble the effective program
    bitkit info     — Summarize an image (program length, bound data, dump)
    bitkit insert   — Insert an empty word, patching operands
    bitkit delete   — Delete a word, patching operands

Usage:
    python bitkit.py <command> [options]
    python bitkit.py --help
    python bitkit.py <command> --help

Examples:
    python bitkit.py run fibonacci --max-steps 500
    python bitkit.py run adder --trace --random-input
    python bitkit.py disasm fibonacci
    python bitkit.py insert fibonacci --space code --at 3 -o fib2
    python bitkit.py delete fibonacci --space data --at 9
"""

import argparse
import logging
import sys

from bitcomp import __version__
from bitcomp.config import RAM_SIZE
from bitcomp.cpu.alu import get_int, word_to_str
from bitcomp.cpu.decoder import listing, effective_instructions
from bitcomp.emu import Computer
from bitcomp.log import setup_logging, verbosity_level
from bitcomp.mem.memory import Address, AddrSpace, next_free_path
from bitcomp.periph.printer import random_input

log = logging.getLogger("bitcomp.cli")


def main(argv=None):
    parser = argparse.ArgumentParser(
        prog="bitkit",
        description="bitcomp toolkit — run, disassemble and edit memory images",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""commands:
  run        Run an image until it halts, is cancelled or times out
  disasm     Disassemble the effective program
  info       Summarize a memory image
  insert     Insert an empty word and patch operands
  delete     Delete a word and patch operands
""",
    )
    parser.add_argument("--version", action="version", version=f"bitkit {__version__}")
    parser.add_argument("-v", "--verbose", action="count", default=0,
                        help="More console logging (-v INFO, -vv DEBUG)")
    parser.add_argument("--log-file", default=None, help="Also log everything to this file")
    sub = parser.add_subparsers(dest="command", metavar="command")

    # ── run ──────────────────────────────────────────────────────────────
    p_run = sub.add_parser("run", help="Run a memory image")
    p_run.add_argument("input", help="Memory image file")
    p_run.add_argument("--max-steps", type=int, default=None,
                       help=f"Step ceiling (default {Computer.DEFAULT_MAX_STEPS})")
    p_run.add_argument("--trace", action="store_true", help="Print one line per executed step")
    p_run.add_argument("--random-input", action="store_true",
                       help="Reads of the port return random words instead of zero")

    # ── disasm ───────────────────────────────────────────────────────────
    p_dis = sub.add_parser("disasm", help="Disassemble the effective program")
    p_dis.add_argument("input", help="Memory image file")

    # ── info ─────────────────────────────────────────────────────────────
    p_info = sub.add_parser("info", help="Summarize a memory image")
    p_info.add_argument("input", help="Memory image file")

    # ── insert / delete ──────────────────────────────────────────────────
    for name, text in (("insert", "Insert an empty word"), ("delete", "Delete a word")):
        p_edit = sub.add_parser(name, help=f"{text} and patch operands")
        p_edit.add_argument("input", help="Memory image file")
        p_edit.add_argument("--space", choices=["code", "data"], default="code",
                            help="Address space to edit")
        p_edit.add_argument("--at", type=int, required=True,
                            help=f"Word index (0-{RAM_SIZE - 1})")
        p_edit.add_argument("-o", "--output", default=None,
                            help="Output image (default: next free saved-ram-N)")

    # ── Parse and dispatch ───────────────────────────────────────────────
    args = parser.parse_args(argv)
    if not args.command:
        parser.print_help()
        sys.exit(0)

    setup_logging(console_level=verbosity_level(args.verbose), log_file=args.log_file)

    try:
        handler = COMMANDS[args.command]
    except KeyError:
        print(f"Unknown command: {args.command}", file=sys.stderr)
        sys.exit(1)

    try:
        return handler(args)
    except Exception as e:
        log.debug("Command %s failed", args.command, exc_info=True)
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(1)


# ═════════════════════════════════════════════════════════════════════════════
# COMMAND IMPLEMENTATIONS
# ═════════════════════════════════════════════════════════════════════════════

def _load(path, **kwargs) -> Computer:
    comp = Computer(**kwargs)
    comp.load_image(path)
    return comp


# ── run ──────────────────────────────────────────────────────────────────
def cmd_run(args):
    comp = _load(args.input, input_source=random_input if args.random_input else None)
    if args.trace:
        comp.enable_trace()

    result = comp.run(max_steps=args.max_steps)

    if args.trace:
        for line in comp.get_trace():
            print(line)
        print()
    for word in result.output:
        print(f"{word_to_str(word)}  {get_int(word):3d}")
    print(f"[{result.reason.value}] {result.steps} steps, "
          f"reg={word_to_str(result.reg)} ({get_int(result.reg)})")
    return 0


# ── disasm ───────────────────────────────────────────────────────────────
def cmd_disasm(args):
    comp = _load(args.input)
    lines = listing(comp.mem)
    if not lines:
        print("(empty program)")
    for line in lines:
        print(line)
    return 0


# ── info ─────────────────────────────────────────────────────────────────
def cmd_info(args):
    comp = _load(args.input)
    program = effective_instructions(comp.mem)
    bound = sorted(comp.view().bound)
    data_used = [i for i in range(RAM_SIZE)
                 if comp.cursor.address_used(Address(AddrSpace.DATA, i))]

    print(f"Image:        {args.input}")
    print(f"Program:      {len(program)} of {RAM_SIZE} CODE words")
    print(f"Data in use:  {', '.join(map(str, data_used)) or '-'}")
    print(f"Bound data:   {', '.join(map(str, bound)) or '-'}")
    print()
    print("     CODE      DATA")
    print(comp.mem.dump())
    return 0


# ── insert / delete ──────────────────────────────────────────────────────
def _edit(args, insert: bool):
    comp = _load(args.input)
    space = AddrSpace.CODE if args.space == "code" else AddrSpace.DATA
    if not 0 <= args.at < RAM_SIZE:
        raise ValueError(f"--at must be in 0..{RAM_SIZE - 1}, got {args.at}")
    adr = Address(space, args.at)

    done = comp.insert_word(adr) if insert else comp.delete_word(adr)
    verb = "insert" if insert else "delete"
    if not done:
        print(f"[{verb}] {adr} rejected", file=sys.stderr)

    out = args.output or next_free_path()
    comp.save_image(out)
    print(f"[{verb}] {adr} -> {out}")
    return 0 if done else 1


def cmd_insert(args):
    return _edit(args, insert=True)


def cmd_delete(args):
    return _edit(args, insert=False)


# ═════════════════════════════════════════════════════════════════════════════
# COMMAND DISPATCH TABLE
# ═════════════════════════════════════════════════════════════════════════════

COMMANDS = {
    "run": cmd_run,
    "disasm": cmd_disasm,
    "info": cmd_info,
    "insert": cmd_insert,
    "delete": cmd_delete,
}


if __name__ == "__main__":
    sys.exit(main())
