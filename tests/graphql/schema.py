from graphql import build_schema
from graphql.type import (
    GraphQLArgument,
    GraphQLField,
    GraphQLID,
    GraphQLInt,
    GraphQLList,
    GraphQLObjectType,
    GraphQLSchema,
    GraphQLString,
)

from graphene_complexity import Complexity

schema = build_schema(
    """
    type Query {
      users(limit: Int): [User!]!
      user(id: ID!): User
      posts(limit: Int, offset: Int): [Post!]!
    }

    type Mutation {
      createUser(name: String!): User
    }

    type User {
      id: ID!
      name: String!
      posts(limit: Int): [Post!]!
      friends: [User!]!
    }

    type Post {
      id: ID!
      title: String!
      content: String!
      author: User!
      comments(limit: Int): [Comment!]!
    }

    type Comment {
      id: ID!
      text: String!
      author: User!
    }
    """
)

query_only_schema = build_schema(
    """
    type Query {
      hello: String
    }
    """
)

abstract_schema = build_schema(
    """
    interface SearchResult {
      relevance: Float!
    }

    type Post implements SearchResult {
      relevance: Float!
      id: ID!
      title: String!
    }

    type User implements SearchResult {
      relevance: Float!
      id: ID!
      name: String!
    }

    union Media = Post | User

    type Query {
      search(term: String!): [SearchResult!]!
      media: [Media!]!
    }
    """
)

directive_schema = build_schema(
    """
    directive @complexity(
      value: Int!
      multipliers: [String!]
    ) on FIELD_DEFINITION

    type Query {
      simple: String
      user(id: ID): User
      posts: [Post!]! @complexity(value: 10)
      users(limit: Int): [User!]! @complexity(value: 2, multipliers: ["limit"])
      comments(limit: Int, take: Int): [Comment!]!
        @complexity(value: 5, multipliers: ["limit", "take"])
    }

    type User {
      id: ID!
      name: String!
      posts(limit: Int): [Article!]!
        @complexity(value: 1, multipliers: ["limit"])
    }

    type Article {
      id: ID!
      title: String!
    }

    type Post {
      id: ID!
      title: String! @complexity(value: 5)
    }

    type Comment {
      id: ID!
    }
    """
)


Item = GraphQLObjectType(
    "Item",
    lambda: {"id": GraphQLField(GraphQLID), "name": GraphQLField(GraphQLString)},
)

Catalog = GraphQLObjectType(
    "Query",
    lambda: {
        "items": GraphQLField(
            GraphQLList(Item), extensions={"complexity": 20}
        ),
        "pagedItems": Complexity(value=3, multipliers=("first",))(
            GraphQLField(
                GraphQLList(Item), args={"first": GraphQLArgument(GraphQLInt)}
            )
        ),
        "mappedItems": GraphQLField(
            GraphQLList(Item),
            args={"first": GraphQLArgument(GraphQLInt)},
            extensions={"complexity": {"value": 2, "multipliers": ["first"]}},
        ),
        "computedItems": Complexity(
            value=lambda *, args, child_complexity, **_kwargs: 100
            + child_complexity
        )(GraphQLField(GraphQLList(Item))),
        "plain": GraphQLField(GraphQLString),
    },
)

extensions_schema = GraphQLSchema(query=Catalog)
