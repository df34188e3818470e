# Copyright 2020 Brian T. Park
#
# MIT License

from dataclasses import asdict
from dataclasses import is_dataclass
from typing import Any
import os
import logging
import json

from tzsnapshot.data_types.ts_types import ZoneSnapshotDatabase


# Serializer for Set() and the ZoneRecord dataclass. See
# https://researchdatapod.com/how-to-solve-python-typeerror-object-of-type-set-is-not-json-serializable/
def serialize_objects(obj: Any) -> Any:
    if isinstance(obj, set):
        return sorted(obj)
    if is_dataclass(obj) and not isinstance(obj, type):
        return asdict(obj)
    raise TypeError("Type %s is not serializable" % type(obj))


class JsonGenerator:
    """Generate the JSON representation of the ZoneSnapshotDatabase to the
    given 'json_file'.
    """
    def __init__(
        self,
        zsdb: ZoneSnapshotDatabase,
        json_file: str
    ):
        self.zsdb = zsdb
        self.json_file = json_file

    def generate_files(self, output_dir: str) -> None:
        """Serialize ZoneSnapshotDatabase to the specified file."""
        full_filename = os.path.join(output_dir, self.json_file)
        with open(full_filename, 'w', encoding='utf-8') as output_file:
            output_file.write(self.generate_json())
            print(file=output_file)  # add terminating newline
        logging.info("Created %s", full_filename)

    def generate_json(self) -> str:
        return json.dumps(self.zsdb, indent=2, default=serialize_objects)
