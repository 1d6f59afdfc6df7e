"""
work-status feeds the status of resources deployed on a spoke cluster back
into the Work records on the hub.

The main modules are:
  - `manifest`: the Work data model and the fed back status
  - `jsonpath`: evaluates status path expressions
  - `statusfeedback`: resolves feedback rules and reads values
  - `status_controller`: the reconcile loop that writes the Work status
"""

__all__ = [
    "manifest",
    "jsonpath",
    "statusfeedback",
    "status_controller",
    "exceptions",
    # Note this is exposed for CLI documentation, not to be used as a library
    "tool",
]
