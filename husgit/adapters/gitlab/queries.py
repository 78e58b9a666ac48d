"""GraphQL documents used by ``GitlabClient``."""

CURRENT_USER = """
query {
  currentUser {
    name
  }
}
"""

USER_PROJECTS = """
query getProjects($membership: Boolean, $after: String) {
  projects(membership: $membership, after: $after) {
    pageInfo {
      endCursor
      hasNextPage
    }
    nodes {
      id
      nameWithNamespace
      fullPath
    }
  }
}
"""

PROJECT_BRANCHES = """
query getProjectBranches($fullPath: ID!, $searchPattern: String!) {
  project(fullPath: $fullPath) {
    repository {
      branchNames(searchPattern: $searchPattern, offset: 0, limit: 20)
    }
  }
}
"""

OPEN_MERGE_REQUESTS = """
query getOpenMergeRequests(
  $fullPath: ID!
  $sourceBranches: [String!]
  $targetBranches: [String!]
) {
  project(fullPath: $fullPath) {
    mergeRequests(
      sourceBranches: $sourceBranches
      targetBranches: $targetBranches
      state: opened
    ) {
      nodes {
        id
        iid
        webUrl
        state
      }
    }
  }
}
"""

UPDATE_MERGE_REQUEST_TITLE = """
mutation updateMergeRequestTitle($fullPath: ID!, $iid: String!, $title: String) {
  mergeRequestUpdate(input: { projectPath: $fullPath, iid: $iid, title: $title }) {
    mergeRequest {
      id
    }
    errors
  }
}
"""
