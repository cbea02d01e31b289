"""
LL(1) Parser Implementation - Core Data Structures and Grammar Processing

This module implements the grammar model, FIRST/FOLLOW computation, predictive
parse table construction and the stack-driven LL(1) parsing engine that
recognizes pre-lexed token streams.
"""

from dataclasses import dataclass, field
from typing import List, Set, Dict, Tuple, Optional, Union, Any, Iterable, Sequence, FrozenSet
from enum import Enum
import logging


logger = logging.getLogger("ll1")
logger.addHandler(logging.NullHandler())

ARROW = "->"
CONFLICT_POLICIES = ("overwrite", "warn", "reject")


class LL1Error(Exception):
    """Base class of the errors raised by the LL(1) toolkit."""


class GrammarError(LL1Error):
    """Raised when a grammar cannot be turned into a usable parser."""

    def __init__(self, message: str, conflicts: Optional[List['Conflict']] = None):
        super().__init__(message)
        self.conflicts = conflicts or []


class TokenStreamError(LL1Error):
    """Raised when a token record is malformed."""

    def __init__(self, message: str, source_line: int):
        super().__init__(f"Token stream line {source_line}: {message}")
        self.source_line = source_line


@dataclass
class ParserConfig:
    """Configuration options for grammar analysis and parsing."""
    epsilon_symbol: str = "epsilon"
    end_marker: str = "$"
    strict_epsilon: bool = False  # False keeps the legacy FIRST-of-sequence behaviour
    conflict_policy: str = "overwrite"

    def __post_init__(self):
        if self.conflict_policy not in CONFLICT_POLICIES:
            raise ValueError(
                f"Unknown conflict policy '{self.conflict_policy}'. "
                f"Must be one of: {', '.join(CONFLICT_POLICIES)}")
        if self.epsilon_symbol == self.end_marker:
            raise ValueError("Epsilon and end markers must differ")


@dataclass(frozen=True)
class Production:
    """Represents a single production rule in a context-free grammar."""
    lhs: str  # Left-hand side non-terminal
    rhs: Tuple[str, ...]  # Right-hand side symbols
    index: int = 0  # Declaration order

    def __str__(self) -> str:
        return f"{self.lhs} -> {' '.join(self.rhs)}"


@dataclass
class Grammar:
    """Represents a context-free grammar."""
    productions: List[Production]
    terminals: Set[str]
    non_terminals: Set[str]
    start_symbol: str
    epsilon_symbol: str = "epsilon"
    end_marker: str = "$"

    def is_terminal(self, symbol: str) -> bool:
        return symbol in self.terminals

    def is_non_terminal(self, symbol: str) -> bool:
        return symbol in self.non_terminals

    def undefined_non_terminals(self) -> List[str]:
        """Non-terminals used on some right-hand side but never defined."""
        defined = {prod.lhs for prod in self.productions}
        return sorted(self.non_terminals - defined)

    def __str__(self) -> str:
        lines = [f"Start Symbol: {self.start_symbol}"]
        lines.append(f"Terminals: {sorted(self.terminals)}")
        lines.append(f"Non-terminals: {sorted(self.non_terminals)}")
        lines.append("Productions:")
        for prod in self.productions:
            lines.append(f"  {prod}")
        return "\n".join(lines)


@dataclass(frozen=True)
class Token:
    """Represents a pre-lexed token."""
    line: int  # Source line number (for error reporting)
    type: str  # Terminal symbol name
    value: str  # Literal text value

    def __str__(self) -> str:
        return f"Token({self.type}, '{self.value}', line={self.line})"


class GrammarProcessor:
    """Processes grammar text and creates Grammar objects."""

    def __init__(self, config: Optional[ParserConfig] = None):
        self.config = config or ParserConfig()
        self.productions: List[Production] = []

    def parse_grammar(self, grammar_text: str) -> Grammar:
        """
        Parse grammar text and return a Grammar object.

        One production per line, ``LHS -> RHS_1 ... RHS_n``. Lines with fewer
        than three tokens or without the arrow in second position are skipped.
        """
        return self.parse_lines(grammar_text.splitlines())

    def parse_lines(self, lines: Iterable[str]) -> Grammar:
        self.productions = []
        for line_no, line in enumerate(lines, 1):
            parts = line.split()
            if not parts:
                continue
            if len(parts) < 3 or parts[1] != ARROW:
                logger.debug("Skipping malformed grammar line %d: %r", line_no, line)
                continue
            self.productions.append(
                Production(lhs=parts[0], rhs=tuple(parts[2:]), index=len(self.productions)))

        terminals, non_terminals = self._classify_symbols()
        start_symbol = self.productions[0].lhs if self.productions else ""

        grammar = Grammar(
            productions=self.productions,
            terminals=terminals,
            non_terminals=non_terminals,
            start_symbol=start_symbol,
            epsilon_symbol=self.config.epsilon_symbol,
            end_marker=self.config.end_marker
        )
        for symbol in grammar.undefined_non_terminals():
            logger.warning("Non-terminal '%s' is used but has no production", symbol)
        return grammar

    def _classify_symbols(self) -> Tuple[Set[str], Set[str]]:
        """
        Split the grammar symbols into terminals and non-terminals.

        Strategy:
        1. All LHS symbols are non-terminals
        2. RHS symbols that are known LHS symbols or start with an uppercase
           letter are non-terminals
        3. Everything else except the epsilon marker is a terminal
        """
        non_terminals = {prod.lhs for prod in self.productions}
        terminals = set()

        for prod in self.productions:
            for symbol in prod.rhs:
                if symbol == self.config.epsilon_symbol:
                    continue
                if symbol in non_terminals or symbol[0].isupper():
                    non_terminals.add(symbol)
                else:
                    terminals.add(symbol)

        return terminals, non_terminals


class TokenReader:
    """Reads pre-lexed token records, one ``<line> <type> <value>`` per line."""

    def parse_tokens(self, token_text: str) -> List[Token]:
        return self.parse_lines(token_text.splitlines())

    def parse_lines(self, lines: Iterable[str]) -> List[Token]:
        tokens = []
        for source_line, line in enumerate(lines, 1):
            fields = line.split()
            if not fields:
                continue
            if len(fields) < 3:
                raise TokenStreamError(
                    f"expected '<line> <type> <value>', got {line.strip()!r}", source_line)
            try:
                line_number = int(fields[0])
            except ValueError:
                raise TokenStreamError(f"invalid line number {fields[0]!r}", source_line)
            tokens.append(Token(line=line_number, type=fields[1], value=fields[2]))
        return tokens


class FirstFollowComputer:
    """Computes FIRST and FOLLOW sets for the non-terminals of a grammar."""

    def __init__(self, grammar: Grammar, strict_epsilon: bool = False):
        self.grammar = grammar
        self.strict_epsilon = strict_epsilon
        self.epsilon = grammar.epsilon_symbol
        self._first: Dict[str, FrozenSet[str]] = {}
        self._follow: Dict[str, FrozenSet[str]] = {}
        self.first_passes = 0
        self.follow_passes = 0
        self._first_done = False

    def first_of(self, symbols: Sequence[str]) -> Set[str]:
        """
        Compute FIRST of a sequence of symbols against the current FIRST sets.

        FIRST(X1 X2 ... Xn):
        - A terminal Xi is added and ends the scan
        - A non-terminal Xi contributes FIRST(Xi); the scan goes on only if
          epsilon is in FIRST(Xi)
        - In strict mode epsilon is added only when the whole sequence vanishes
        """
        first_set = set()

        for symbol in symbols:
            if symbol == self.epsilon:
                if self.strict_epsilon:
                    continue
                first_set.add(symbol)
                break

            if symbol in self.grammar.non_terminals:
                symbol_first = self._first.get(symbol, frozenset())
                if self.strict_epsilon:
                    first_set.update(symbol_first - {self.epsilon})
                else:
                    first_set.update(symbol_first)
                if self.epsilon not in symbol_first:
                    break
            else:
                first_set.add(symbol)
                break
        else:
            if self.strict_epsilon:
                first_set.add(self.epsilon)

        return first_set

    def compute_first_sets(self) -> Dict[str, FrozenSet[str]]:
        """
        Compute FIRST sets for all non-terminals by fixed-point iteration.

        Each pass unions FIRST(rhs) into FIRST(lhs) for every rule; the loop
        stops after the first pass in which no entry grew.
        """
        self._first = {nt: frozenset() for nt in self.grammar.non_terminals}
        self.first_passes = 0

        changed = True
        while changed:
            changed = False
            self.first_passes += 1
            for production in self.grammar.productions:
                if self._grow(self._first, production.lhs, self.first_of(production.rhs)):
                    changed = True

        self._first_done = True
        logger.debug("FIRST sets stabilized after %d passes", self.first_passes)
        return dict(self._first)

    def follow_of(self, non_terminal: str) -> Set[str]:
        """Compute FOLLOW of one non-terminal against the current FOLLOW sets."""
        follow_set = set()
        if non_terminal == self.grammar.start_symbol:
            follow_set.add(self.grammar.end_marker)

        for production in self.grammar.productions:
            lhs_follow = self._follow.get(production.lhs, frozenset())
            for i, symbol in enumerate(production.rhs):
                if symbol != non_terminal:
                    continue
                beta = production.rhs[i + 1:]
                if beta:
                    first_beta = self.first_of(beta)
                    if self.strict_epsilon:
                        follow_set.update(first_beta - {self.epsilon})
                    else:
                        follow_set.update(first_beta)
                    if self.epsilon in first_beta:
                        follow_set.update(lhs_follow)
                else:
                    follow_set.update(lhs_follow)

        return follow_set

    def compute_follow_sets(self) -> Dict[str, FrozenSet[str]]:
        """
        Compute FOLLOW sets for all non-terminals by fixed-point iteration.

        FIRST sets are computed first when they have not been stabilized yet.
        """
        if not self._first_done:
            self.compute_first_sets()

        self._follow = {nt: frozenset() for nt in self.grammar.non_terminals}
        self.follow_passes = 0
        ordered = sorted(self.grammar.non_terminals)

        changed = True
        while changed:
            changed = False
            self.follow_passes += 1
            for non_terminal in ordered:
                if self._grow(self._follow, non_terminal, self.follow_of(non_terminal)):
                    changed = True

        logger.debug("FOLLOW sets stabilized after %d passes", self.follow_passes)
        return dict(self._follow)

    def get_first(self, symbol: str) -> FrozenSet[str]:
        if symbol not in self.grammar.non_terminals:
            return frozenset({symbol})
        return self._first.get(symbol, frozenset())

    def get_follow(self, symbol: str) -> FrozenSet[str]:
        return self._follow.get(symbol, frozenset())

    @staticmethod
    def _grow(mapping: Dict[str, FrozenSet[str]], key: str, additions: Set[str]) -> bool:
        """Replace mapping[key] by its union with additions; report growth."""
        current = mapping.get(key, frozenset())
        updated = current | additions
        if updated == current:
            return False
        mapping[key] = updated
        return True


@dataclass
class TableCell:
    """All the productions written to one parse table entry."""
    non_terminal: str
    terminal: str
    production: Production  # The retained (last written) production
    candidates: List[Production] = field(default_factory=list)
    sources: List[str] = field(default_factory=list)  # "FIRST" or "FOLLOW" per candidate

    @property
    def is_conflict(self) -> bool:
        return len(self.candidates) > 1

    def assign(self, production: Production, source: str):
        if production not in self.candidates:
            self.candidates.append(production)
            self.sources.append(source)
        self.production = production


@dataclass
class Conflict:
    """Represents a parsing conflict in the LL(1) table."""
    non_terminal: str
    terminal: str
    conflict_type: str  # "FIRST/FIRST" or "FIRST/FOLLOW"
    productions: List[Production]
    chosen: Production

    @property
    def description(self) -> str:
        alternatives = " | ".join(str(prod) for prod in self.productions)
        return f"{alternatives} (kept {self.chosen})"

    def __str__(self) -> str:
        return (f"{self.conflict_type} conflict on ({self.non_terminal}, '{self.terminal}'): "
                f"{self.description}")


@dataclass
class ParseTable:
    """Represents the LL(1) predictive parse table."""
    cells: Dict[Tuple[str, str], TableCell] = field(default_factory=dict)

    @property
    def entries(self) -> Dict[Tuple[str, str], Production]:
        return {key: cell.production for key, cell in self.cells.items()}

    @property
    def conflicts(self) -> List[Conflict]:
        conflicts = []
        for (non_terminal, terminal), cell in self.cells.items():
            if not cell.is_conflict:
                continue
            conflict_type = "FIRST/FOLLOW" if "FOLLOW" in cell.sources else "FIRST/FIRST"
            conflicts.append(Conflict(
                non_terminal=non_terminal,
                terminal=terminal,
                conflict_type=conflict_type,
                productions=list(cell.candidates),
                chosen=cell.production
            ))
        return conflicts

    def lookup(self, non_terminal: str, terminal: str) -> Optional[Production]:
        cell = self.cells.get((non_terminal, terminal))
        return cell.production if cell else None

    def __len__(self) -> int:
        return len(self.cells)

    def __str__(self) -> str:
        lines = ["Parse Table:"]
        for (non_terminal, terminal), production in sorted(self.entries.items()):
            lines.append(f"  M[{non_terminal}, {terminal}] = {production}")
        return "\n".join(lines)


class ParseTableBuilder:
    """Builds the predictive parse table from stabilized FIRST and FOLLOW sets."""

    def __init__(self, grammar: Grammar, ff_computer: FirstFollowComputer):
        self.grammar = grammar
        self.ff_computer = ff_computer

    def build(self) -> ParseTable:
        """
        Build the parse table.

        For A -> alpha: M[A, t] = rule for every t in FIRST(alpha) - {epsilon};
        if epsilon is in FIRST(alpha), M[A, f] = rule for every f in FOLLOW(A).
        Later rules overwrite earlier ones; every write is kept on the cell.
        """
        table = ParseTable()
        epsilon = self.grammar.epsilon_symbol

        for production in self.grammar.productions:
            first_rhs = self.ff_computer.first_of(production.rhs)
            for terminal in sorted(first_rhs - {epsilon}):
                self._assign(table, production, terminal, "FIRST")

            if epsilon in first_rhs:
                for terminal in sorted(self.ff_computer.get_follow(production.lhs) - {epsilon}):
                    self._assign(table, production, terminal, "FOLLOW")

        return table

    @staticmethod
    def _assign(table: ParseTable, production: Production, terminal: str, source: str):
        key = (production.lhs, terminal)
        cell = table.cells.get(key)
        if cell is None:
            cell = TableCell(non_terminal=production.lhs, terminal=terminal, production=production)
            table.cells[key] = cell
        cell.assign(production, source)


class ParseStatus(Enum):
    """States of the parsing automaton."""
    RUNNING = "running"
    ACCEPT = "accept"
    REJECT = "reject"


class ActionType(Enum):
    """Enumeration of LL(1) parsing actions."""
    MATCH = "match"
    EXPAND = "expand"
    ACCEPT = "accept"
    ERROR = "error"


@dataclass(frozen=True)
class ParseAction:
    """Represents a single parsing action."""
    action_type: ActionType
    value: Optional[Union[Token, Production]] = None  # Token for match, Production for expand

    def __str__(self) -> str:
        if self.action_type == ActionType.MATCH:
            return f"match {self.value.type}"
        elif self.action_type == ActionType.EXPAND:
            return f"expand {self.value}"
        elif self.action_type == ActionType.ACCEPT:
            return "accept"
        else:
            return "error"


@dataclass(frozen=True)
class SyntaxDiagnostic:
    """The one-line report of a rejected token stream."""
    kind: str  # "mismatch" or "unexpected"
    line: int
    found: str
    expected: Optional[str] = None

    def __str__(self) -> str:
        if self.kind == "mismatch":
            return (f"Syntax error at line {self.line}: "
                    f"expected '{self.expected}' but found '{self.found}'")
        return f"Syntax error at line {self.line}: unexpected token '{self.found}'"


@dataclass(frozen=True)
class ParseConfiguration:
    """A snapshot of the automaton: stack (bottom first), input index and status."""
    stack: Tuple[str, ...]
    index: int = 0
    status: ParseStatus = ParseStatus.RUNNING
    diagnostic: Optional[SyntaxDiagnostic] = None
    action: Optional[ParseAction] = None  # Action that produced this configuration

    @property
    def top(self) -> Optional[str]:
        return self.stack[-1] if self.stack else None


@dataclass
class ParseTreeNode:
    """Represents a node in the parse tree."""
    label: str
    children: List['ParseTreeNode'] = field(default_factory=list)
    is_terminal: bool = False
    token: Optional[Token] = None  # For terminal nodes

    def __str__(self) -> str:
        if self.is_terminal:
            return f"'{self.label}'"
        return f"{self.label}({', '.join(str(child) for child in self.children)})"

    def leaves(self) -> List['ParseTreeNode']:
        if not self.children:
            return [self]
        return [leaf for child in self.children for leaf in child.leaves()]


@dataclass
class ParseStep:
    """Represents a single step in the parsing trace."""
    step_number: int
    stack: Tuple[str, ...]  # Stack before the action, bottom first
    input_tokens: Sequence[Token]  # Whole input, shared by every step of a parse
    index: int  # Position of the lookahead in input_tokens
    action: ParseAction
    production_used: Optional[Production] = None

    @property
    def input_buffer(self) -> List[Token]:
        """Remaining input tokens, lookahead first."""
        return list(self.input_tokens[self.index:])

    def __str__(self) -> str:
        stack_str = ' '.join(self.stack)
        input_str = ' '.join(token.type for token in self.input_tokens[self.index:self.index + 5])
        if len(self.input_tokens) - self.index > 5:
            input_str += " ..."
        return f"Step {self.step_number}: Stack=[{stack_str}] Input=[{input_str}] Action={self.action}"


@dataclass
class ParseResult:
    """Represents the result of a parsing operation."""
    success: bool
    diagnostic: Optional[SyntaxDiagnostic] = None
    trace: List[ParseStep] = field(default_factory=list)
    derivation: List[Production] = field(default_factory=list)
    parse_tree: Optional[ParseTreeNode] = None

    @property
    def verdict(self) -> str:
        return "YES" if self.success else "NO"

    @property
    def error_message(self) -> str:
        return str(self.diagnostic) if self.diagnostic else ""

    def __str__(self) -> str:
        if self.success:
            return f"Parse successful. Tree: {self.parse_tree}"
        return f"Parse failed: {self.error_message}"


class LL1ParsingEngine:
    """
    Stack-driven LL(1) parsing engine.

    The engine is a finite state machine over ParseConfiguration values:
    step() is a pure transition function and parse() iterates it from the
    initial configuration until ACCEPT or REJECT. The first error halts the
    parse; there is no recovery.
    """

    def __init__(self, grammar: Grammar, parse_table: ParseTable):
        self.grammar = grammar
        self.parse_table = parse_table
        self.end_marker = grammar.end_marker
        self.epsilon = grammar.epsilon_symbol

    def prepare_input(self, tokens: Sequence[Token]) -> List[Token]:
        """Append the end-of-input sentinel, carrying the last real line."""
        last_line = tokens[-1].line if tokens else 0
        return list(tokens) + [Token(line=last_line, type=self.end_marker, value=self.end_marker)]

    def initial_configuration(self) -> ParseConfiguration:
        return ParseConfiguration(stack=(self.end_marker, self.grammar.start_symbol))

    def step(self, configuration: ParseConfiguration, tokens: Sequence[Token]) -> ParseConfiguration:
        """
        Compute the configuration following ``configuration``.

        Args:
            configuration: Current automaton configuration
            tokens: Input tokens including the end-of-input sentinel

        Returns:
            The next configuration; terminal configurations map to themselves
        """
        if configuration.status != ParseStatus.RUNNING:
            return configuration

        stack = configuration.stack
        index = configuration.index
        top = stack[-1]
        current = tokens[index]

        if top == self.end_marker and current.type == self.end_marker:
            return ParseConfiguration(stack=stack, index=index, status=ParseStatus.ACCEPT,
                                      action=ParseAction(ActionType.ACCEPT))

        if top == current.type:
            return ParseConfiguration(stack=stack[:-1], index=index + 1,
                                      action=ParseAction(ActionType.MATCH, current))

        if self.grammar.is_terminal(top):
            diagnostic = SyntaxDiagnostic(kind="mismatch", line=current.line,
                                          found=current.value, expected=top)
            return self._reject(configuration, diagnostic)

        production = self.parse_table.lookup(top, current.type)
        if production is None:
            culprit = current
            if index == len(tokens) - 1 and index > 0:
                culprit = tokens[index - 1]
            diagnostic = SyntaxDiagnostic(kind="unexpected", line=culprit.line, found=culprit.value)
            return self._reject(configuration, diagnostic)

        pushed = tuple(symbol for symbol in reversed(production.rhs) if symbol != self.epsilon)
        return ParseConfiguration(stack=stack[:-1] + pushed, index=index,
                                  action=ParseAction(ActionType.EXPAND, production))

    def parse(self, tokens: Sequence[Token]) -> ParseResult:
        """
        Parse a token stream.

        Args:
            tokens: Pre-lexed tokens, without the end-of-input sentinel

        Returns:
            ParseResult with verdict, diagnostic, trace and derivation
        """
        input_tokens = self.prepare_input(tokens)
        configuration = self.initial_configuration()
        trace: List[ParseStep] = []
        derivation: List[Production] = []

        while configuration.status == ParseStatus.RUNNING:
            following = self.step(configuration, input_tokens)
            action = following.action
            production = action.value if action.action_type == ActionType.EXPAND else None
            if production is not None:
                derivation.append(production)
            trace.append(ParseStep(
                step_number=len(trace) + 1,
                stack=configuration.stack,
                input_tokens=input_tokens,
                index=configuration.index,
                action=action,
                production_used=production
            ))
            configuration = following

        if configuration.status == ParseStatus.ACCEPT:
            tree = build_parse_tree(self.grammar.start_symbol, trace, self.epsilon)
            return ParseResult(success=True, trace=trace, derivation=derivation, parse_tree=tree)

        return ParseResult(success=False, diagnostic=configuration.diagnostic,
                           trace=trace, derivation=derivation)

    @staticmethod
    def _reject(configuration: ParseConfiguration, diagnostic: SyntaxDiagnostic) -> ParseConfiguration:
        return ParseConfiguration(stack=configuration.stack, index=configuration.index,
                                  status=ParseStatus.REJECT, diagnostic=diagnostic,
                                  action=ParseAction(ActionType.ERROR))


def build_parse_tree(start_symbol: str, trace: Sequence[ParseStep], epsilon: str = "epsilon") -> ParseTreeNode:
    """
    Rebuild the parse tree of an accepted parse from its trace.

    Match and expand actions are replayed against a stack of pending nodes
    that mirrors the parse stack, so each action resolves the node on top.
    """
    root = ParseTreeNode(label=start_symbol)
    pending = [root]

    for step in trace:
        action = step.action
        if action.action_type == ActionType.MATCH:
            node = pending.pop()
            node.is_terminal = True
            node.token = action.value
        elif action.action_type == ActionType.EXPAND:
            node = pending.pop()
            node.children = [ParseTreeNode(label=s) for s in action.value.rhs if s != epsilon]
            pending.extend(reversed(node.children))
            if not node.children:
                node.children.append(ParseTreeNode(label=epsilon, is_terminal=True))

    return root


class LL1Parser:
    """
    High-level interface tying the grammar model, FIRST/FOLLOW engines, the
    table builder and the parsing engine together.
    """

    def __init__(self, config: Optional[ParserConfig] = None):
        self.config = config or ParserConfig()
        self.grammar_processor = GrammarProcessor(self.config)
        self.token_reader = TokenReader()
        self.grammar: Optional[Grammar] = None
        self.ff_computer: Optional[FirstFollowComputer] = None
        self.first_sets: Dict[str, FrozenSet[str]] = {}
        self.follow_sets: Dict[str, FrozenSet[str]] = {}
        self.parse_table: Optional[ParseTable] = None
        self.parsing_engine: Optional[LL1ParsingEngine] = None

    @classmethod
    def from_grammar_text(cls, grammar_text: str, config: Optional[ParserConfig] = None) -> 'LL1Parser':
        parser = cls(config)
        parser.load_grammar(grammar_text)
        parser.build()
        return parser

    def load_grammar(self, grammar_text: str) -> Grammar:
        self.grammar = self.grammar_processor.parse_grammar(grammar_text)
        return self.grammar

    def build(self) -> ParseTable:
        """Compute FIRST, FOLLOW and the parse table; apply the conflict policy."""
        if self.grammar is None or not self.grammar.productions:
            raise GrammarError("Grammar has no valid productions")

        self.ff_computer = FirstFollowComputer(self.grammar, strict_epsilon=self.config.strict_epsilon)
        self.first_sets = self.ff_computer.compute_first_sets()
        self.follow_sets = self.ff_computer.compute_follow_sets()
        self.parse_table = ParseTableBuilder(self.grammar, self.ff_computer).build()

        conflicts = self.parse_table.conflicts
        if conflicts and self.config.conflict_policy == "reject":
            details = "; ".join(str(conflict) for conflict in conflicts)
            raise GrammarError(f"Grammar is not LL(1): {details}", conflicts)
        if self.config.conflict_policy == "warn":
            for conflict in conflicts:
                logger.warning("%s", conflict)

        self.parsing_engine = LL1ParsingEngine(self.grammar, self.parse_table)
        return self.parse_table

    def parse(self, tokens: Sequence[Token]) -> ParseResult:
        if self.parsing_engine is None:
            self.build()
        return self.parsing_engine.parse(tokens)

    def parse_token_text(self, token_text: str) -> ParseResult:
        return self.parse(self.token_reader.parse_tokens(token_text))


class GrammarWorkflowManager:
    """
    Runs grammar analysis and token parsing for the HTTP service.

    Every method returns a dictionary with a ``success`` flag; failures carry
    an ``error`` message and an ``error_type`` instead of raising.
    """

    def __init__(self, grammar_text: str, config: Optional[ParserConfig] = None):
        self.grammar_text = grammar_text
        self.parser = LL1Parser(config)
        self.workflow_state = "initial"

    def analyze_grammar(self) -> Dict[str, Any]:
        """
        Build FIRST/FOLLOW sets and the parse table.

        Returns:
            Dictionary containing success status, grammar info, sets, table
            entries, conflicts and HTML renderings
        """
        try:
            grammar = self.parser.load_grammar(self.grammar_text)
            table = self.parser.build()
        except GrammarError as e:
            return {
                'success': False,
                'error': str(e),
                'error_type': 'grammar_error',
                'conflicts': [str(conflict) for conflict in e.conflicts]
            }

        from visualization import VisualizationGenerator
        visualizer = VisualizationGenerator()
        self.workflow_state = "parse_table_built"

        return {
            'success': True,
            'start_symbol': grammar.start_symbol,
            'productions': [str(prod) for prod in grammar.productions],
            'grammar_info': {
                'terminals': sorted(grammar.terminals),
                'non_terminals': sorted(grammar.non_terminals),
                'undefined_non_terminals': grammar.undefined_non_terminals(),
                'production_count': len(grammar.productions)
            },
            'first_sets': {nt: sorted(first) for nt, first in sorted(self.parser.first_sets.items())},
            'follow_sets': {nt: sorted(follow) for nt, follow in sorted(self.parser.follow_sets.items())},
            'parse_table': {f"{nt},{t}": str(prod) for (nt, t), prod in sorted(table.entries.items())},
            'conflicts': [str(conflict) for conflict in table.conflicts],
            'parse_table_html': visualizer.generate_parse_table_html(table, grammar),
            'sets_html': visualizer.generate_sets_html(self.parser.first_sets, self.parser.follow_sets),
            'conflicts_html': visualizer.format_conflict_report(table.conflicts)
        }

    def parse_token_stream(self, token_text: str) -> Dict[str, Any]:
        """
        Parse a token stream against the analysed grammar.

        Returns:
            Dictionary containing the verdict, diagnostic, trace and tree
        """
        if self.workflow_state != "parse_table_built":
            analysis = self.analyze_grammar()
            if not analysis['success']:
                return analysis

        try:
            tokens = self.parser.token_reader.parse_tokens(token_text)
        except TokenStreamError as e:
            return {'success': False, 'error': str(e), 'error_type': 'token_stream_error'}

        from visualization import VisualizationGenerator
        visualizer = VisualizationGenerator()
        result = self.parser.parse(tokens)

        return {
            'success': True,
            'accepted': result.success,
            'verdict': result.verdict,
            'diagnostic': result.error_message or None,
            'derivation': [str(prod) for prod in result.derivation],
            'trace_steps': len(result.trace),
            'trace_html': visualizer.generate_trace_html(result.trace),
            'parse_tree_dot': visualizer.generate_parse_tree_dot(result.parse_tree) if result.parse_tree else None,
            'error_html': visualizer.format_error_message(result.diagnostic) if result.diagnostic else None
        }
