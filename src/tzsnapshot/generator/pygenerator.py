# Copyright 2018 Brian T. Park
#
# MIT License
"""
Generate the zone_table.py file, a Python module holding one tuple per zone
and link.
"""

import os
import logging
from typing import Any
from typing import List

from tzsnapshot.data_types.ts_types import CommentsMap
from tzsnapshot.data_types.ts_types import ZoneRecord
from tzsnapshot.data_types.ts_types import ZoneSnapshotDatabase


class PythonGenerator:
    """Generate the zone_table.py file. The problem log is rendered into the
    header comment.
    """
    ZONE_TABLE_FILE_NAME = 'zone_table.py'

    def __init__(
        self,
        invocation: str,
        zsdb: ZoneSnapshotDatabase,
        python_file: str = ZONE_TABLE_FILE_NAME,
    ):
        self.invocation = invocation
        self.python_file = python_file
        self.tz_files = '\n#   '.join(zsdb['tz_files'])
        self.tz_version = zsdb['tz_version']
        self.reference_date = zsdb['reference_date']
        self.num_zones = zsdb['num_zones']
        self.num_links = zsdb['num_links']
        self.records = zsdb['records']
        self.problems = zsdb['problems']
        self.removed_zones = zsdb['removed_zones']
        self.removed_links = zsdb['removed_links']

    def generate_files(self, output_dir: str) -> None:
        self._write_file(output_dir, self.python_file, self.generate_table())

    def _write_file(self, output_dir: str, filename: str, content: str) -> None:
        full_filename = os.path.join(output_dir, filename)
        with open(full_filename, 'w', encoding='utf-8') as output_file:
            print(content, end='', file=output_file)
        logging.info("Created %s", full_filename)

    def _generate_header(self) -> str:
        num_zones_and_links = self.num_zones + self.num_links
        num_removed_zones = len(self.removed_zones)
        num_removed_links = len(self.removed_links)
        num_removed_zones_and_links = num_removed_zones + num_removed_links
        problem_items = render_problems(self.problems)

        return f"""\
# This file was generated by the following script:
#
#   $ {self.invocation}
#
# using the TZ Database files
#
#   {self.tz_files}
#
# from https://github.com/eggert/tz/releases/tag/{self.tz_version}
#
# Reference date: {self.reference_date}
# Supported Zones: {num_zones_and_links} \
({self.num_zones} zones, {self.num_links} links)
# Unsupported Zones: {num_removed_zones_and_links} \
({num_removed_zones} zones, {num_removed_links} links)
#
# Problems: {len(self.problems)}
{problem_items}#
# DO NOT EDIT

"""

    def generate_table(self) -> str:
        table_items = ''
        for name, record in sorted(self.records.items()):
            table_items += f"    {name!r}: {render_record(record)},\n"

        removed_zone_items = render_comments_map(self.removed_zones)
        removed_link_items = render_comments_map(self.removed_links)

        return self._generate_header() + f"""\
# Each entry is a tuple of
#   (std_abbrev, std_name),
#   (dst_abbrev, dst_name) or None,
#   std_offset_minutes,
#   dst_delta_minutes,
#   (count, weekday, month) of DST start or None (count 5 is 'last',
#       weekday 1 is Monday),
#   (hour, minute) of DST start or None,
#   (count, weekday, month) of DST end or None,
#   (hour, minute) of DST end or None.
ZONE_TABLE = {{
{table_items}}}

# ---------------------------------------------------------------------------
# Unsupported zones: {len(self.removed_zones)}
# ---------------------------------------------------------------------------

{removed_zone_items}
# ---------------------------------------------------------------------------
# Unsupported links: {len(self.removed_links)}
# ---------------------------------------------------------------------------

{removed_link_items}"""


def render_record(record: ZoneRecord) -> str:
    """Render the ZoneRecord as a tuple literal of plain tuples."""
    fields: List[Any] = [
        record.std_name,
        record.dst_name,
        record.std_offset_minutes,
        record.dst_delta_minutes,
        record.dst_start,
        record.dst_start_time,
        record.dst_end,
        record.dst_end_time,
    ]
    items = [
        repr(tuple(f)) if isinstance(f, tuple) else repr(f)
        for f in fields
    ]
    return '(' + ', '.join(items) + ')'


def render_problems(problems: List[str]) -> str:
    comment = ''
    for problem in problems:
        comment += f'#   {problem}\n'
    return comment


def render_comments_map(comments: CommentsMap, indent: str = '') -> str:
    """Convert the CommentsMap into a Python comment. Print the name and list
    of reasons one a single line, or multiple lines, like this:

    # Name1 {reason}
    #
    # Name2 {
    #   reason1,
    #   reason2,
    # }
    """
    comment = ''
    for name, reasons in sorted(comments.items()):
        if len(reasons) <= 1:
            comment += f"# {indent}{name} {{{next(iter(reasons))}}}\n"
        else:
            comment += f"# {indent}{name} {{\n"
            for reason in reasons:
                comment += f'#   {indent}{reason},\n'
            comment += f"# {indent}}}\n"
    return comment
