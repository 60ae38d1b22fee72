from .. import graphene
from .base import GetDefaultsMixin


class Schema(GetDefaultsMixin, graphene.Schema):
    pass
