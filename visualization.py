"""
Visualization and Output Formatting Module

This module provides visualization and formatting capabilities for the LL(1)
parser, including HTML table generation for the predictive parse table and
the FIRST/FOLLOW sets, DOT format output for parse trees, and parsing trace
formatting.
"""

from typing import Dict, List, Tuple, Optional, Set, FrozenSet, Mapping
from dataclasses import dataclass
import html


@dataclass
class VisualizationConfig:
    """Configuration options for visualization output."""
    table_css_classes: str = "parse-table"
    trace_css_classes: str = "parsing-trace"
    error_css_classes: str = "error-message"
    compact_mode: bool = False


class HTMLTableGenerator:
    """Generates HTML tables for the LL(1) parse table and symbol sets."""

    def __init__(self, config: Optional[VisualizationConfig] = None):
        self.config = config or VisualizationConfig()

    def generate_parse_table_html(self, parse_table, non_terminals: Set[str],
                                  terminals: Set[str], end_marker: str = "$") -> str:
        """
        Generate HTML table for the predictive parse table.

        Args:
            parse_table: ParseTable with (non_terminal, terminal) cells
            non_terminals: Set of non-terminal symbols (table rows)
            terminals: Set of terminal symbols (table columns)
            end_marker: End-of-input marker, shown as the last column

        Returns:
            HTML string containing the parse table
        """
        if not parse_table.cells:
            return self._generate_empty_table_html("No parse table entries found")

        columns = sorted(terminals - {end_marker}) + [end_marker]
        # Lookaheads missing from the terminal set still get a column
        extra = sorted({t for (_, t) in parse_table.cells} - set(columns))
        columns = columns[:-1] + extra + columns[-1:]
        rows = sorted(non_terminals)

        html_lines = []
        html_lines.append(f'<table class="grammar-table {self.config.table_css_classes}" role="table" aria-label="LL(1) Parse Table">')
        html_lines.append('<thead>')
        html_lines.append('<tr>')
        html_lines.append('<th class="grammar-table-header grammar-table-header-primary" scope="col">Non-terminal</th>')
        for terminal in columns:
            html_lines.append(f'<th class="grammar-table-header" scope="col">{html.escape(terminal)}</th>')
        html_lines.append('</tr>')
        html_lines.append('</thead>')

        html_lines.append('<tbody>')
        for non_terminal in rows:
            html_lines.append(self._generate_table_row(non_terminal, columns, parse_table))
        html_lines.append('</tbody>')
        html_lines.append('</table>')

        return '\n'.join(html_lines)

    def generate_sets_html(self, first_sets: Mapping[str, FrozenSet[str]],
                           follow_sets: Mapping[str, FrozenSet[str]]) -> str:
        """Generate an HTML table listing FIRST and FOLLOW of every non-terminal."""
        if not first_sets and not follow_sets:
            return self._generate_empty_table_html("No FIRST/FOLLOW sets computed")

        html_lines = []
        html_lines.append(f'<table class="grammar-table {self.config.table_css_classes}" role="table" aria-label="FIRST and FOLLOW sets">')
        html_lines.append('<thead>')
        html_lines.append('<tr>')
        html_lines.append('<th class="grammar-table-header grammar-table-header-primary" scope="col">Non-terminal</th>')
        html_lines.append('<th class="grammar-table-header" scope="col">FIRST</th>')
        html_lines.append('<th class="grammar-table-header" scope="col">FOLLOW</th>')
        html_lines.append('</tr>')
        html_lines.append('</thead>')
        html_lines.append('<tbody>')

        for non_terminal in sorted(set(first_sets) | set(follow_sets)):
            first = self._format_set(first_sets.get(non_terminal, frozenset()))
            follow = self._format_set(follow_sets.get(non_terminal, frozenset()))
            html_lines.append('<tr>')
            html_lines.append(f'<th class="grammar-table-cell grammar-table-cell-primary" scope="row">{html.escape(non_terminal)}</th>')
            html_lines.append(f'<td class="grammar-table-cell">{first}</td>')
            html_lines.append(f'<td class="grammar-table-cell">{follow}</td>')
            html_lines.append('</tr>')

        html_lines.append('</tbody>')
        html_lines.append('</table>')

        return '\n'.join(html_lines)

    def _generate_table_row(self, non_terminal: str, columns: List[str], parse_table) -> str:
        """Generate a single table row for the given non-terminal."""
        lines = []
        lines.append('<tr>')
        lines.append(f'<th class="grammar-table-cell grammar-table-cell-primary" scope="row">{html.escape(non_terminal)}</th>')

        for terminal in columns:
            cell = parse_table.cells.get((non_terminal, terminal))
            lines.append(f'<td class="grammar-table-cell">{self._format_cell(cell)}</td>')

        lines.append('</tr>')
        return '\n'.join(lines)

    def _format_cell(self, cell) -> str:
        """Format a table cell, marking conflicting candidates."""
        if cell is None:
            return ''

        if cell.is_conflict:
            formatted = []
            for production in cell.candidates:
                css = "conflict-action chosen" if production == cell.production else "conflict-action"
                formatted.append(f'<span class="{css}">{html.escape(str(production))}</span>')
            return '<span class="grammar-action-conflict">' + ' / '.join(formatted) + '</span>'

        return f'<span class="grammar-action-expand">{html.escape(str(cell.production))}</span>'

    @staticmethod
    def _format_set(symbols) -> str:
        return html.escape('{ ' + ', '.join(sorted(symbols)) + ' }')

    def _generate_empty_table_html(self, message: str) -> str:
        """Generate HTML for an empty table with a message."""
        html_lines = []
        html_lines.append(f'<div class="{self.config.error_css_classes}">')
        html_lines.append(f'<p>{html.escape(message)}</p>')
        html_lines.append('</div>')
        return '\n'.join(html_lines)


class DOTGenerator:
    """Generates DOT format output for parse trees."""

    def __init__(self, config: Optional[VisualizationConfig] = None):
        self.config = config or VisualizationConfig()
        self.node_counter = 0

    def generate_parse_tree_dot(self, parse_tree, title: str = "Parse Tree") -> str:
        """
        Generate compact DOT format representation of a parse tree.

        Args:
            parse_tree: ParseTreeNode object representing the root of the tree
            title: Title for the graph

        Returns:
            DOT format string
        """
        if not parse_tree:
            return self._generate_empty_tree_dot(title, "Parse tree is empty")

        self.node_counter = 0
        lines = []

        lines.append(f'digraph "{self._escape_dot_string(title)}" {{')
        lines.append('  rankdir=TB;')
        lines.append('  node [fontname="Arial", fontsize=12];')
        lines.append('  edge [fontsize=9, color="#333333"];')
        lines.append('  bgcolor=white;')
        if not self.config.compact_mode:
            lines.append('  nodesep=0.4;')
            lines.append('  ranksep=0.6;')

        dot_content, _ = self._generate_node_dot(parse_tree)
        lines.append(dot_content)
        lines.append('}')

        return '\n'.join(lines)

    def _generate_node_dot(self, node) -> Tuple[str, int]:
        """
        Generate DOT representation for a single node and its children.

        Returns:
            Tuple of (dot_string, next_node_id)
        """
        lines = []
        current_id = self.node_counter
        self.node_counter += 1

        label = node.label
        if node.is_terminal and node.token is not None and node.token.value != node.label:
            label = f"{node.label}\n{node.token.value}"
        escaped_label = self._escape_dot_string(label)

        if node.is_terminal:
            lines.append(f'  node{current_id} [label="{escaped_label}", shape=box, style=filled, fillcolor="#e3f2fd", color="#1976d2", fontname="Courier New"];')
        else:
            lines.append(f'  node{current_id} [label="{escaped_label}", shape=ellipse, style=filled, fillcolor="#e8f5e8", color="#388e3c"];')

        for child in node.children:
            child_id = self.node_counter
            child_dot, _ = self._generate_node_dot(child)
            lines.append(child_dot)
            lines.append(f'  node{current_id} -> node{child_id};')

        return '\n'.join(lines), self.node_counter

    def _generate_empty_tree_dot(self, title: str, message: str) -> str:
        """Generate DOT for an empty or error tree."""
        lines = []
        lines.append(f'digraph "{self._escape_dot_string(title)}" {{')
        lines.append('  rankdir=TB;')
        lines.append('  node [fontname="Arial"];')
        lines.append(f'  empty [label="{self._escape_dot_string(message)}", shape=box, color=red];')
        lines.append('}')
        return '\n'.join(lines)

    def _escape_dot_string(self, text: str) -> str:
        """Escape a string for use in DOT format."""
        if not text:
            return ""

        text = str(text)
        text = text.replace('\\', '\\\\')
        text = text.replace('"', '\\"')
        text = text.replace('\n', '\\n')
        text = text.replace('\t', '\\t')
        text = text.replace('\r', '\\r')

        return text


class ParseTraceFormatter:
    """Formats parsing traces as HTML with step-by-step details."""

    def __init__(self, config: Optional[VisualizationConfig] = None):
        self.config = config or VisualizationConfig()

    def generate_trace_html(self, trace_steps: List, title: str = "Parsing Trace") -> str:
        """
        Generate HTML representation of parsing trace.

        Args:
            trace_steps: List of ParseStep objects
            title: Title for the trace

        Returns:
            HTML string showing step-by-step parsing
        """
        if not trace_steps:
            return self._generate_empty_trace_html("No parsing steps recorded")

        html_lines = []
        html_lines.append(f'<div class="{self.config.trace_css_classes}">')
        html_lines.append(f'<h3>{html.escape(title)}</h3>')
        html_lines.append('<table class="grammar-table trace-table" role="table" aria-label="Step-by-step parsing trace">')
        html_lines.append('<thead>')
        html_lines.append('<tr>')
        html_lines.append('<th class="grammar-table-header grammar-table-header-primary" scope="col">Step</th>')
        html_lines.append('<th class="grammar-table-header" scope="col">Stack</th>')
        html_lines.append('<th class="grammar-table-header" scope="col">Input</th>')
        html_lines.append('<th class="grammar-table-header" scope="col">Action</th>')
        html_lines.append('</tr>')
        html_lines.append('</thead>')
        html_lines.append('<tbody>')

        for step in trace_steps:
            html_lines.append(self._format_trace_step(step))

        html_lines.append('</tbody>')
        html_lines.append('</table>')
        html_lines.append('</div>')

        return '\n'.join(html_lines)

    def format_trace_text(self, trace_steps: List) -> str:
        """Plain text trace, one step per line."""
        return '\n'.join(str(step) for step in trace_steps)

    def _format_trace_step(self, step) -> str:
        """Format a single trace step as a table row."""
        stack_str = html.escape(' '.join(step.stack))
        input_types = [token.type for token in step.input_buffer]
        if self.config.compact_mode and len(input_types) > 5:
            input_types = input_types[:5] + ['...']
        input_str = html.escape(' '.join(input_types))
        action_str = html.escape(str(step.action))
        css = f"trace-action-{step.action.action_type.value}"

        lines = []
        lines.append('<tr>')
        lines.append(f'<td class="grammar-table-cell grammar-table-cell-primary">{step.step_number}</td>')
        lines.append(f'<td class="grammar-table-cell trace-stack">{stack_str}</td>')
        lines.append(f'<td class="grammar-table-cell trace-input">{input_str}</td>')
        lines.append(f'<td class="grammar-table-cell {css}">{action_str}</td>')
        lines.append('</tr>')
        return '\n'.join(lines)

    def _generate_empty_trace_html(self, message: str) -> str:
        return f'<div class="trace-empty">{html.escape(message)}</div>'


class ErrorMessageFormatter:
    """Formats error messages with proper styling and context."""

    def __init__(self, config: Optional[VisualizationConfig] = None):
        self.config = config or VisualizationConfig()

    def format_parse_error(self, diagnostic) -> str:
        """
        Format a syntax diagnostic as HTML.

        Args:
            diagnostic: SyntaxDiagnostic produced by a rejected parse

        Returns:
            Formatted HTML error message
        """
        html_lines = []
        html_lines.append(f'<div class="{self.config.error_css_classes}">')
        html_lines.append('<h4>Syntax Error</h4>')
        html_lines.append(f'<p class="error-text">{html.escape(str(diagnostic))}</p>')
        html_lines.append(f'<p><strong>Line:</strong> {diagnostic.line}</p>')
        if diagnostic.expected is not None:
            html_lines.append(f'<p><strong>Expected:</strong> {html.escape(diagnostic.expected)}</p>')
        html_lines.append(f'<p><strong>Found:</strong> {html.escape(diagnostic.found)}</p>')
        html_lines.append('</div>')

        return '\n'.join(html_lines)

    def format_conflict_report(self, conflicts: List) -> str:
        """
        Format a conflict report as HTML.

        Args:
            conflicts: List of Conflict objects

        Returns:
            Formatted HTML conflict report
        """
        if not conflicts:
            return '<div class="no-conflicts">No conflicts detected in the grammar.</div>'

        html_lines = []
        html_lines.append('<div class="conflict-report">')
        html_lines.append(f'<h4>Grammar Conflicts ({len(conflicts)} found)</h4>')

        for i, conflict in enumerate(conflicts, 1):
            html_lines.append('<div class="conflict-item">')
            html_lines.append(f'<h5>Conflict {i}: {html.escape(conflict.conflict_type)}</h5>')
            html_lines.append(f'<p><strong>Non-terminal:</strong> {html.escape(conflict.non_terminal)}</p>')
            html_lines.append(f'<p><strong>Lookahead:</strong> {html.escape(conflict.terminal)}</p>')
            html_lines.append('<p><strong>Candidate Productions:</strong></p>')
            html_lines.append('<ul>')
            for production in conflict.productions:
                html_lines.append(f'<li>{html.escape(str(production))}</li>')
            html_lines.append('</ul>')
            html_lines.append(f'<p><strong>Kept:</strong> {html.escape(str(conflict.chosen))}</p>')
            html_lines.append('</div>')

        html_lines.append('</div>')

        return '\n'.join(html_lines)


class VisualizationGenerator:
    """Main visualization generator that combines all formatting capabilities."""

    def __init__(self, config: Optional[VisualizationConfig] = None):
        self.config = config or VisualizationConfig()
        self.table_generator = HTMLTableGenerator(self.config)
        self.dot_generator = DOTGenerator(self.config)
        self.trace_formatter = ParseTraceFormatter(self.config)
        self.error_formatter = ErrorMessageFormatter(self.config)

    def generate_parse_table_html(self, parse_table, grammar) -> str:
        """Generate HTML for the parse table of a grammar."""
        return self.table_generator.generate_parse_table_html(
            parse_table,
            grammar.non_terminals,
            grammar.terminals,
            grammar.end_marker
        )

    def generate_sets_html(self, first_sets: Dict[str, FrozenSet[str]],
                           follow_sets: Dict[str, FrozenSet[str]]) -> str:
        return self.table_generator.generate_sets_html(first_sets, follow_sets)

    def generate_parse_tree_dot(self, parse_tree, title: str = "Parse Tree") -> str:
        """Generate DOT format for parse tree."""
        return self.dot_generator.generate_parse_tree_dot(parse_tree, title)

    def generate_trace_html(self, trace_steps: List, title: str = "Parsing Trace") -> str:
        """Generate HTML for parsing trace."""
        return self.trace_formatter.generate_trace_html(trace_steps, title)

    def format_error_message(self, diagnostic) -> str:
        return self.error_formatter.format_parse_error(diagnostic)

    def format_conflict_report(self, conflicts: List) -> str:
        return self.error_formatter.format_conflict_report(conflicts)
