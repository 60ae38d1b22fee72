from graphene.types import Schema as GrapheneSchema

from . import base


class Schema(base.SchemaMixin, GrapheneSchema):
    def __init__(
        self,
        *args,
        estimators=base.MISSING,
        maximum_complexity=base.MISSING,
        maximum_node_count=base.MISSING,
        **kwargs
    ):
        self.complexity_estimators = estimators
        self.complexity_maximum = maximum_complexity
        self.complexity_maximum_node_count = maximum_node_count
        # fail on setup, not on the first query
        base.check_configuration(
            self.get_complexity_estimators(),
            self.get_complexity_maximum(),
            self.get_complexity_maximum_node_count(),
        )
        super().__init__(*args, **kwargs)
