# main.py
# Main entry point for the data contract CLI tool.

import sys
import json
import asyncio
import argparse
from dotenv import load_dotenv

# Load environment variables from .env file (for DATA_CONTRACT_LLM_URL)
load_dotenv()

from config import load_settings
from editor import ContractEditor
from parsers import LlmGateway


def read_text(path: str) -> str:
    try:
        with open(path, 'r', encoding='utf-8') as f:
            return f.read()
    except OSError as e:
        print(f"ERROR: Could not read {path}: {e}", file=sys.stderr)
        sys.exit(1)


def write_json(path: str, data) -> None:
    try:
        with open(path, 'w', encoding='utf-8') as f:
            json.dump(data, f, ensure_ascii=False, indent=2)
        print(f"SUCCESS: Data contract written to {path}", file=sys.stderr)
    except OSError as e:
        print(f"ERROR: Could not write to output file {path}: {e}", file=sys.stderr)
        sys.exit(1)


def report_errors(editor: ContractEditor) -> bool:
    """Prints both error channels; returns True when the contract passed validation."""
    for message in editor.ai_error_messages:
        print(f"ERROR: {message}", file=sys.stderr)
    if editor.error_messages:
        print("WARN: Platform validation reported errors:", file=sys.stderr)
        for i, message in enumerate(editor.error_messages):
            print(f"E{i+1} : {message}", file=sys.stderr)
        return False
    if editor.validation_status() == "passing":
        print("INFO: Platform validation passing.", file=sys.stderr)
        return True
    return False


def run_generate(args) -> int:
    editor = ContractEditor(gateway=LlmGateway(load_settings()))
    if args.amend:
        print(f"INFO: Loading existing contract from {args.amend}...", file=sys.stderr)
        editor.import_json(read_text(args.amend))
    print(f"INFO: {editor.prompt_label()}: {args.description}", file=sys.stderr)
    editor.update_prompt(args.description)
    accepted = len(editor.history)
    asyncio.run(editor.generate_schema())

    # a successful round trip records the prompt in the history
    if len(editor.history) == accepted:
        report_errors(editor)
        return 1
    write_json(args.output_json, editor.exported)
    report_errors(editor)
    return 0


def run_import(args) -> int:
    editor = ContractEditor()
    editor.import_json(read_text(args.input_json))
    print(f"INFO: Imported {len(editor.document_types)} document type(s), {editor.size_bytes()} bytes.", file=sys.stderr)
    if args.output_json:
        write_json(args.output_json, editor.exported)
    else:
        print(editor.json_output())
    return 0 if report_errors(editor) else 1


def run_validate(args) -> int:
    editor = ContractEditor()
    editor.import_json(read_text(args.input_json))
    return 0 if report_errors(editor) else 1


def main(argv=None) -> int:
    """Main function to dispatch the CLI commands."""
    parser = argparse.ArgumentParser(description="Generate, import and validate Dash Platform data contracts.")
    subparsers = parser.add_subparsers(dest="command", required=True)

    generate = subparsers.add_parser("generate", help="Draft a data contract from a project description using an LLM.")
    generate.add_argument("description", help="Project description, or the changes to make with --amend.")
    generate.add_argument("output_json", help="A path where the generated contract is written.")
    generate.add_argument("--amend", metavar="EXISTING_JSON", help="An existing contract to change instead of starting fresh.")
    generate.set_defaults(handler=run_generate)

    import_ = subparsers.add_parser("import", help="Round-trip a contract through the editor model and validate it.")
    import_.add_argument("input_json", help="A path to a data contract JSON file.")
    import_.add_argument("output_json", nargs="?", help="Where to write the normalized contract (stdout if omitted).")
    import_.set_defaults(handler=run_import)

    validate = subparsers.add_parser("validate", help="Validate a contract against the platform rules.")
    validate.add_argument("input_json", help="A path to a data contract JSON file.")
    validate.set_defaults(handler=run_validate)

    args = parser.parse_args(argv)
    return args.handler(args)


if __name__ == "__main__":
    sys.exit(main())
