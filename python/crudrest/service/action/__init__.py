"""
The actions that carry out a single REST operation on a resource.  Each action is request-scoped:
it is constructed for one request, processed once, and discarded.
"""
from .base import Action
from .crud import (CrudAction, IndexAction, ViewAction, AddAction, EditAction, DeleteAction,
                   DescribeAction)
