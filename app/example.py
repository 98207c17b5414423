import argparse

from remarkup.api import ReMarkup

if __name__ == '__main__':
    parser = argparse.ArgumentParser()
    parser.add_argument('--html_file', type=str, default='./app/example.html')
    parser.add_argument('--translated_file', type=str, default=None)
    parser.add_argument('--output_file', type=str, default='./app/example.remarked.html')
    args = parser.parse_args()

    # Read HTML file
    print(f'Reading HTML file from {args.html_file}')
    html_content = open(args.html_file, 'r').read()

    rm = ReMarkup(config={'nonexistent_child_distance': 10})

    # Strip attributes for the translator
    editable = rm.un_markup(html_content)
    print(f'Editable: {editable}')

    if args.translated_file is None:
        # Without a translation, the editable fragment itself is remarked
        translated = editable
    else:
        print(f'Reading translated HTML file from {args.translated_file}')
        translated = open(args.translated_file, 'r').read()

    # Restore attributes onto the translated fragment
    print('Restoring attributes')
    for match in rm.match_elements(html_content, translated):
        print(f'  {match.original_index} -> {match.modified_index} (cost {match.cost:.2f})')
    result = rm.re_markup(html_content, translated)

    print(f'Result: {result}')
    with open(args.output_file, 'w') as f:
        f.write(result)
