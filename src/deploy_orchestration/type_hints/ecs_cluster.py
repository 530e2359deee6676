"""ECS cluster selection: use an existing cluster or create a new one."""

from .base import ChooseOrCreateTypeHintCommand


class ECSClusterCommand(ChooseOrCreateTypeHintCommand):
    title = "Select ECS cluster to deploy to:"

    def list_resources(self, option_setting):
        return self.resource_queryer.list_ecs_clusters()
