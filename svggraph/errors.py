class GraphError(ValueError):
  """Base error for graph requests that cannot be rendered."""


class WorkPeriodError(GraphError):
  pass


class RequestError(GraphError):
  pass
