import sys
import argparse
import os
from .ast import table_to_csv
from .main import run_basic


def main(argv=None):
    parser = argparse.ArgumentParser(description='Tiny BASIC Interpreter')
    parser.add_argument('filename', help='Path to the BASIC source file to execute')
    parser.add_argument('--debug', action='store_true',
                        help='Dump tokens and syntax tree, save variables in CSV format')

    args = parser.parse_args(argv)

    try:
        with open(args.filename, 'r') as file:
            code = file.read()
    except FileNotFoundError:
        print(f"Error: File '{args.filename}' not found")
        return 1
    except (OSError, UnicodeDecodeError) as e:
        print(f"Error: {str(e)}")
        return 1

    interpreter = run_basic(code, debug=args.debug)
    if interpreter is None:
        return 1

    # In debug mode, save the final variable state and the syntax tree next to the program
    if args.debug:
        base = os.path.splitext(args.filename)[0]
        outputs = [
            (base + '.csv', interpreter.get_variables_csv(), "Variable state"),
            (base + '.tree.csv', table_to_csv(interpreter.ast.to_table()), "Syntax tree"),
            (base + '.tokens.csv', table_to_csv(interpreter.ast.token_table()), "Tokens"),
        ]
        for csv_filename, content, label in outputs:
            with open(csv_filename, 'w', newline='') as csvfile:
                csvfile.write(content)
            print(f"\n{label} saved to: {csv_filename}")

    return 1 if interpreter.errors else 0


if __name__ == "__main__":
    sys.exit(main())
