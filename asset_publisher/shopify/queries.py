"""GraphQL documents for the Shopify Admin API (Files)."""

STAGED_UPLOADS_CREATE = """
mutation Staged($input: [StagedUploadInput!]!) {
  stagedUploadsCreate(input: $input) {
    stagedTargets {
      url
      resourceUrl
      parameters { name value }
    }
    userErrors { field message }
  }
}
"""

FILE_CREATE = """
mutation FileCreate($files: [FileCreateInput!]!) {
  fileCreate(files: $files) {
    files {
      __typename
      id
      fileStatus
      ... on MediaImage {
        image { url }
      }
      ... on GenericFile {
        url
      }
    }
    userErrors { field message }
  }
}
"""

FILE_NODE = """
query Node($id: ID!) {
  node(id: $id) {
    __typename
    id
    ... on File {
      fileStatus
      fileErrors { code message }
    }
    ... on MediaImage {
      image { url }
    }
    ... on GenericFile {
      url
    }
  }
}
"""
