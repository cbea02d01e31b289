#!/usr/bin/env python3

import logging
import sys
from argparse import ArgumentParser

from ll1_parser import LL1Error, LL1Parser, ParserConfig, CONFLICT_POLICIES
from visualization import ParseTraceFormatter


def build_argument_parser():
    parser = ArgumentParser(description="Check a pre-lexed token stream against an LL(1) grammar.")
    parser.add_argument("grammar", help="Grammar file, one 'LHS -> RHS...' production per line")
    parser.add_argument("tokens", help="Token file, one '<line> <type> <value>' record per line")
    parser.add_argument("errors", help="File receiving the syntax error diagnostic")
    parser.add_argument("--strict-epsilon", dest="strict_epsilon", action="store_const", const=True, default=False,
                        help="Add epsilon to FIRST only when a whole sequence can vanish")
    parser.add_argument("--conflicts", choices=CONFLICT_POLICIES, default="overwrite",
                        help="What to do with parse table conflicts (default: overwrite)")
    parser.add_argument("--epsilon", default="epsilon", help="Epsilon marker used in the grammar")
    parser.add_argument("--end-marker", dest="end_marker", default="$", help="End-of-input marker")
    parser.add_argument("--trace", action="store_const", const=True, default=False,
                        help="Print the parsing steps to stderr")
    parser.add_argument("--show-table", dest="show_table", action="store_const", const=True, default=False,
                        help="Print the grammar, FIRST/FOLLOW sets and parse table to stderr")
    parser.add_argument("-v", "--verbose", action="store_const", const=True, default=False,
                        help="Debug logging")
    return parser


def print_analysis(parser, out):
    print(parser.grammar, file=out)
    for non_terminal in sorted(parser.first_sets):
        print(f"FIRST({non_terminal}) = {sorted(parser.first_sets[non_terminal])}", file=out)
    for non_terminal in sorted(parser.follow_sets):
        print(f"FOLLOW({non_terminal}) = {sorted(parser.follow_sets[non_terminal])}", file=out)
    print(parser.parse_table, file=out)
    for conflict in parser.parse_table.conflicts:
        print(conflict, file=out)


def main(argv=None):
    args = build_argument_parser().parse_args(argv)
    logging.basicConfig(level=logging.DEBUG if args.verbose else logging.WARNING,
                        format="%(levelname)s %(name)s: %(message)s", stream=sys.stderr)

    try:
        config = ParserConfig(epsilon_symbol=args.epsilon, end_marker=args.end_marker,
                              strict_epsilon=args.strict_epsilon, conflict_policy=args.conflicts)
        with open(args.grammar) as fd:
            grammar_text = fd.read()
        with open(args.tokens) as fd:
            token_text = fd.read()

        parser = LL1Parser.from_grammar_text(grammar_text, config)
        if args.show_table:
            print_analysis(parser, sys.stderr)
        result = parser.parse_token_text(token_text)
        if args.trace:
            print(ParseTraceFormatter().format_trace_text(result.trace), file=sys.stderr)

        with open(args.errors, "w") as fd:
            if result.diagnostic:
                print(result.diagnostic, file=fd)
    except (OSError, ValueError, LL1Error) as exc:
        print(f"error: {exc}", file=sys.stderr)
        return 2

    print(result.verdict)
    return 0


if __name__ == "__main__":
    sys.exit(main())
