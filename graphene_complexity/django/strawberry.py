from .. import base, strawberry
from .base import GetDefaultsMixin


class Schema(GetDefaultsMixin, strawberry.Schema):
    complexity_maximum = base.MISSING
    complexity_maximum_node_count = base.MISSING

    def create_complexity_validator(
        self, estimators, maximum_complexity, maximum_node_count
    ):
        self.complexity_maximum = maximum_complexity
        self.complexity_maximum_node_count = maximum_node_count
        return super().create_complexity_validator(
            estimators,
            self.get_complexity_maximum(),
            self.get_complexity_maximum_node_count(),
        )
