"""
Checks a document against a JSON Schema before it is shared.
Storage never calls this; payloads are stored whether they validate or not.
"""
from jsonschema import SchemaError
from jsonschema.validators import validator_for
from typing import Any, List
import logging

logger = logging.getLogger(__name__)


class Validator:
    def validate(self, document: Any, schema: Any) -> List[str]:
        """
        Returns one message per validation error, empty when the document is valid.
        Raises SchemaError if the schema itself is not a valid JSON Schema.
        """
        if not isinstance(schema, (dict, bool)):
            raise SchemaError(f"Schema must be an object or a boolean, got {type(schema).__name__}")

        validator_cls = validator_for(schema)
        try:
            validator_cls.check_schema(schema)
        except SchemaError as e:
            logger.error(f"Invalid schema: {e.message}")
            raise e

        validator = validator_cls(schema)
        errors = sorted(validator.iter_errors(document), key=lambda e: [str(part) for part in e.absolute_path])
        return [self._format(error) for error in errors]

    @staticmethod
    def _format(error) -> str:
        location = "/" + "/".join(str(part) for part in error.absolute_path)
        return f"{location}: {error.message}"
