from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


class GraphModel(BaseModel):
    """Base for records stored as graph node properties.

    Attributes are snake_case in Python and camelCase on the node (and on the wire),
    so a node's property map validates straight into the model.
    """

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    def to_graph(self) -> dict:
        """Property map for Cypher parameters (camelCase keys, enum values as strings)."""
        return self.model_dump(mode="json", by_alias=True)
