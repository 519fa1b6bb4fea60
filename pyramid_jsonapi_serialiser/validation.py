import json
import pkgutil

import jsonschema


class DocumentValidator():
    """Validate outgoing documents against the JSON:API response jsonschema.

    Arguments:
        schema_file (str): file containing a replacement jsonschema. Defaults
            to the schema bundled with this package.
    """

    def __init__(self, schema_file=None):
        self.schema = self.load_schema(schema_file)
        validator_class = jsonschema.validators.validator_for(self.schema)
        self.validator = validator_class(self.schema)

    @staticmethod
    def load_schema(schema_file=None):
        if schema_file:
            with open(schema_file) as schema_f:
                schema = schema_f.read()
        else:
            schema = pkgutil.get_data(
                __package__,
                'schema/jsonapi-response-schema.json'
            ).decode('utf-8')
        return json.loads(schema)

    def validate(self, doc):
        """Return a list of validation error messages (empty if valid)."""
        return [
            '{}: {}'.format(
                '/'.join(str(p) for p in err.absolute_path) or '<root>',
                err.message
            )
            for err in sorted(
                self.validator.iter_errors(doc), key=lambda e: [str(p) for p in e.absolute_path]
            )
        ]

    def is_valid(self, doc):
        return self.validator.is_valid(doc)
