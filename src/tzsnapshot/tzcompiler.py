#!/usr/bin/env python3
#
# Copyright 2018 Brian T. Park
#
# MIT License.

"""
Read the raw TZ Database files at the location specified by `--input_dir`.
Reduce every zone to the rules in force at the `--reference_date` and generate
the output files selected by `--actions`.

The compiler has a number of stages implemented by various helper classes:

* Extractor
    * Parse and extract the raw TZDB files into internal raw records
      (ZoneInfoRaw, ZoneEraRaw, ZoneRuleRaw).
* Transformer
    * Reduce each rule family to its active rules, select the current era of
      each zone, and synthesize one ZoneRecord per zone and link.
* Generator
    * Generate the output files in the format requested by `--actions`.

Informational Flags:

* --tz_version
    * Pass through flag to identify the TZDB version.

Workflow Flags:

* `--actions` flag is a comma-separated list of output formats
    * json: Generate the `zonedb.json` file
    * python: Generate the `zone_table.py` file

Extractor Flags:

* `--input_dir`
    * Location of the raw TZDB files.

Transformer Flags:

* --reference_date {YYYY-MM-DD}
    * Resolve the rules in force on this date (default: today)
* --strict, --nostrict
    * Stop on zones which cannot be represented (default True). With
      --nostrict, those zones are removed and listed in the output.
* `--include_list {file}`
    * Filter the zones to include only those in this include list.

Generator Flags:

* `--output_dir {dir}`
    * The directory where various files should be created.
    * If empty, it means the same as $PWD.
* --json_file {file}
    * Name of the JSON file (default `zonedb.json`)
* --python_file {file}
    * Name of the Python file (default `zone_table.py`)

Examples:

    $ tzcompiler.py --input_dir ../tz --tz_version 2024a --actions json,python
"""

import argparse
import datetime
import logging
import sys
from typing import Set
from typing_extensions import Protocol

from tzsnapshot.data_types.ts_types import UnsupportedInputError
from tzsnapshot.data_types.ts_types import ZoneSnapshotDatabase
from tzsnapshot.data_types.ts_types import create_transformer_result
from tzsnapshot.data_types.ts_types import create_zone_snapshot_database
from tzsnapshot.extractor.extractor import Extractor
from tzsnapshot.transformer.transformer import Transformer
from tzsnapshot.generator.jsongenerator import JsonGenerator
from tzsnapshot.generator.pygenerator import PythonGenerator


class Generator(Protocol):
    """Define an interface for Generator subclasses for mypy type checking."""
    def generate_files(self, output_dir: str) -> None:
        ...


def generate_outputs(
    invocation: str,
    actions: Set[str],
    output_dir: str,
    json_file: str,
    python_file: str,
    zsdb: ZoneSnapshotDatabase,
) -> None:
    """Generate the files requested by '--actions'."""
    generator: Generator

    if 'json' in actions:
        logging.info('==== Creating %s file', json_file)
        generator = JsonGenerator(zsdb=zsdb, json_file=json_file)
        generator.generate_files(output_dir)

    if 'python' in actions:
        logging.info('==== Creating %s file', python_file)
        generator = PythonGenerator(
            invocation=invocation,
            zsdb=zsdb,
            python_file=python_file,
        )
        generator.generate_files(output_dir)


def main() -> None:
    """
    Main driver for the TZ Database snapshot compiler which parses the IANA TZ
    Database files located at the --input_dir and generates the zone table
    files at --output_dir.

    Usage:
        tzcompiler.py [flags...]
    """
    # Configure command line flags.
    parser = argparse.ArgumentParser(description='Generate Zone Table.')

    # Target action (i.e. output) selector.
    parser.add_argument(
        '--actions',
        help='Comma-separated list of actions or targets (json|python)',
        default='json',
    )

    # Extractor flags.
    parser.add_argument(
        '--input_dir', help='Location of the input directory', required=True)

    # Transformer flags.
    parser.add_argument(
        '--reference_date',
        help='Resolve the rules in force on this date, YYYY-MM-DD '
             '(default: today)',
        type=parse_reference_date,
        default=None,
    )

    # Make --strict the default, --nostrict optional.
    parser.add_argument(
        '--strict',
        help='Stop on zones which cannot be represented',
        action='store_true',
        default=True,
    )
    parser.add_argument(
        '--nostrict',
        help='Remove zones which cannot be represented',
        action='store_false',
        dest='strict',
    )

    # File name containing list of zones and links to include.
    parser.add_argument(
        '--include_list',
        help='File containing list of zones and links to include',
        default='',
    )

    # The tz_version does not affect any data processing. Its value is
    # copied into the various generated files and usually placed in the
    # comments section to describe the source of the data that generated the
    # various files.
    parser.add_argument(
        '--tz_version',
        help='Version string of the TZ files',
        required=True,
    )

    # Target location of the generated files.
    parser.add_argument(
        '--output_dir',
        help='Location of the output directory',
        default='',
    )
    parser.add_argument(
        '--json_file',
        help='The JSON output file (default: zonedb.json)',
        default='zonedb.json',
    )
    parser.add_argument(
        '--python_file',
        help='The Python output file (default: zone_table.py)',
        default=PythonGenerator.ZONE_TABLE_FILE_NAME,
    )

    # Parse the command line arguments
    args = parser.parse_args()

    # Validate the comma-separated --actions flag.
    actions = set(args.actions.split(','))
    allowed_actions = set(['json', 'python'])
    if not actions.issubset(allowed_actions):
        print(f'Invalid --actions: {actions - allowed_actions}')
        sys.exit(1)

    # Configure logging. This should normally be executed after the
    # parser.parse_args() because it allows us set the logging.level using a
    # flag.
    logging.basicConfig(level=logging.INFO)

    # How the script was invoked
    invocation = ' '.join(sys.argv)

    # Read the zone list filter file.
    include_list = read_include_list(args.include_list)

    reference_date = args.reference_date
    if reference_date is None:
        reference_date = datetime.date.today()

    logging.info('======== TZ Compiler settings')
    logging.info(f'Reference date: {reference_date.isoformat()}')
    logging.info(f'Strict: {args.strict}')
    logging.info(f'TZ Version: {args.tz_version}')

    # Extract the TZ files
    logging.info('======== Extracting TZ Data files')
    extractor = Extractor(args.input_dir)
    extractor.parse()
    extractor.print_summary()
    policies_map, zones_map, links_map = extractor.get_data()

    # Transform the TZ zones and rules.
    logging.info('======== Transforming Zones and Rules')
    tresult = create_transformer_result(zones_map, policies_map, links_map)
    transformer = Transformer(
        reference_date=reference_date,
        strict=args.strict,
        include_list=include_list,
    )
    try:
        transformer.transform(tresult)
    except UnsupportedInputError as e:
        logging.error('Unsupported input: %s', e)
        sys.exit(1)
    transformer.print_summary(tresult)

    # Collect the records into a single JSON-serializable object.
    zsdb = create_zone_snapshot_database(
        tz_version=args.tz_version,
        tz_files=Extractor.ZONE_FILES,
        reference_date=reference_date,
        strict=args.strict,
        tresult=tresult,
    )

    # Perform one or more actions.
    logging.info('======== Performing actions, generating files')
    generate_outputs(
        invocation=invocation,
        actions=actions,
        output_dir=args.output_dir,
        json_file=args.json_file,
        python_file=args.python_file,
        zsdb=zsdb,
    )

    logging.info('======== Finished processing TZ Data files.')


def parse_reference_date(value: str) -> datetime.date:
    """Parse the YYYY-MM-DD value of the --reference_date flag."""
    try:
        return datetime.date.fromisoformat(value)
    except ValueError:
        raise argparse.ArgumentTypeError(
            f"Invalid --reference_date '{value}', expected YYYY-MM-DD")


def read_include_list(filename: str) -> Set[str]:
    """Read file containing the list of zones and links to include. Empty
    list means 'include everything'.
    """
    zones: Set[str] = set()
    if not filename:
        return zones

    with open(filename) as f:
        for line in f:
            line = line.strip()
            if not line:
                continue
            if line.startswith('#'):
                continue
            zones.add(line)
    return zones


if __name__ == '__main__':
    main()
