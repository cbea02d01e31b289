import sys
import traceback
from flask import Flask, request, jsonify

from ll1_parser import GrammarWorkflowManager, ParserConfig

app = Flask(__name__)


# --- HTML Escape Helper ---
def escapeHtml(unsafe):
    if unsafe is None: return ''
    unsafe = str(unsafe)
    return unsafe.replace('&', '&amp;').replace('<', '&lt;').replace('>', '&gt;').replace('"', '&quot;').replace("'", '&#039;')


def config_from_request(data):
    """Build a ParserConfig from the optional fields of a JSON request."""
    options = {}
    if 'strict_epsilon' in data:
        options['strict_epsilon'] = bool(data['strict_epsilon'])
    if 'conflict_policy' in data:
        options['conflict_policy'] = data['conflict_policy']
    if 'epsilon' in data:
        options['epsilon_symbol'] = data['epsilon']
    if 'end_marker' in data:
        options['end_marker'] = data['end_marker']
    return ParserConfig(**options)


# --- Flask Endpoints ---

@app.route('/build-parse-table', methods=['POST'])
def build_parse_table():
    """
    Analyse a grammar and return its FIRST/FOLLOW sets and LL(1) parse table.

    Conflicts are reported alongside the table; with the "reject" conflict
    policy a conflicting grammar is answered with a 400.
    """
    data = request.get_json(silent=True)
    if not isinstance(data, dict):
        data = {}
    grammar_input = data.get('grammar')

    if not grammar_input:
        return jsonify({"error": "No grammar provided"}), 400

    try:
        config = config_from_request(data)
    except ValueError as e:
        return jsonify({"error": str(e), "error_type": "config_error"}), 400

    try:
        print("--- Building Parse Table ---", file=sys.stderr)
        workflow_manager = GrammarWorkflowManager(grammar_input, config)
        result = workflow_manager.analyze_grammar()

        if not result['success']:
            print("--- Parse Table Building FAILED ---", file=sys.stderr)
            print(f"Error: {result['error']}", file=sys.stderr)
            return jsonify(result), 400

        print("--- Parse Table Building SUCCEEDED ---", file=sys.stderr)
        print(f"Table entries: {len(result['parse_table'])}", file=sys.stderr)
        if result['conflicts']:
            print(f"Conflicts detected: {len(result['conflicts'])}", file=sys.stderr)
        return jsonify(result)

    except Exception as e:
        print(f"--- UNEXPECTED Python Error: {e} ---", file=sys.stderr)
        traceback.print_exc(file=sys.stderr)
        error_message = f"Unexpected server error: {escapeHtml(str(e))}"
        return jsonify({"error": error_message, "error_type": "system_error"}), 500


@app.route('/parse-tokens', methods=['POST'])
def parse_tokens():
    """
    Parse a pre-lexed token stream against a grammar.

    The response carries the YES/NO verdict, the one-line diagnostic of a
    rejected stream, the step-by-step trace and, on acceptance, the parse tree
    in DOT format.
    """
    data = request.get_json(silent=True)
    if not isinstance(data, dict):
        data = {}
    grammar_input = data.get('grammar')
    token_input = data.get('tokens')

    if not grammar_input:
        return jsonify({"error": "No grammar provided"}), 400
    if token_input is None:
        return jsonify({"error": "No token stream provided"}), 400

    try:
        config = config_from_request(data)
    except ValueError as e:
        return jsonify({"error": str(e), "error_type": "config_error"}), 400

    try:
        workflow_manager = GrammarWorkflowManager(grammar_input, config)
        table_result = workflow_manager.analyze_grammar()
        if not table_result['success']:
            print("--- Parse Table Building FAILED ---", file=sys.stderr)
            return jsonify(table_result), 400

        print("--- Parsing Token Stream ---", file=sys.stderr)
        parse_result = workflow_manager.parse_token_stream(token_input)
        if not parse_result['success']:
            print(f"--- Token Stream Rejected: {parse_result['error']} ---", file=sys.stderr)
            return jsonify(parse_result), 400

        print(f"--- Verdict: {parse_result['verdict']} ---", file=sys.stderr)
        if parse_result['diagnostic']:
            print(parse_result['diagnostic'], file=sys.stderr)

        parse_result['parse_table_html'] = table_result['parse_table_html']
        parse_result['conflicts'] = table_result['conflicts']
        return jsonify(parse_result)

    except Exception as e:
        print(f"--- UNEXPECTED Python Error: {e} ---", file=sys.stderr)
        traceback.print_exc(file=sys.stderr)
        error_message = f"Unexpected server error: {escapeHtml(str(e))}"
        return jsonify({"error": error_message, "error_type": "system_error"}), 500


def main():
    print("--- LL(1) Parser Server ---")
    print("Running on http://127.0.0.1:5000")
    print("-" * 34)
    app.run(debug=False, port=5000)


# --- Main Execution ---
if __name__ == '__main__':
    main()
