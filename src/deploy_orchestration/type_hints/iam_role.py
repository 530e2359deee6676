"""IAM role selection.

``type_hint_data.ServicePrincipal`` narrows the listing to roles that the
given service may assume (e.g. ``ecs-tasks.amazonaws.com``).
"""

from .base import ChooseOrCreateTypeHintCommand


class IAMRoleCommand(ChooseOrCreateTypeHintCommand):
    title = "Select an IAM role:"

    def list_resources(self, option_setting):
        principal = option_setting.type_hint_data.get("ServicePrincipal")
        return self.resource_queryer.list_iam_roles(principal)
