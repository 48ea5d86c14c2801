"""gql-clientgen: typed GraphQL client API generator."""
