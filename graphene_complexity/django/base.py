from django.conf import settings

from .. import base


def _get_default_from_settings(name, default):
    return getattr(settings, name, default)


class GetDefaultsMixin:
    """
    Defaults from the django settings

    `GRAPHENE_COMPLEXITY_MAXIMUM` and
    `GRAPHENE_COMPLEXITY_MAXIMUM_NODE_COUNT` are used when the schema does
    not set a value itself.
    """

    def get_complexity_maximum(self):
        if self.complexity_maximum is not base.MISSING:
            return self.complexity_maximum
        return _get_default_from_settings(
            "GRAPHENE_COMPLEXITY_MAXIMUM", base.DEFAULT_MAXIMUM_COMPLEXITY
        )

    def get_complexity_maximum_node_count(self):
        if self.complexity_maximum_node_count is not base.MISSING:
            return self.complexity_maximum_node_count
        return _get_default_from_settings(
            "GRAPHENE_COMPLEXITY_MAXIMUM_NODE_COUNT",
            base.DEFAULT_MAXIMUM_NODE_COUNT,
        )
