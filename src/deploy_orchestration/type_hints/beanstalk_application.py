"""Elastic Beanstalk application selection."""

from .base import ChooseOrCreateTypeHintCommand


class BeanstalkApplicationCommand(ChooseOrCreateTypeHintCommand):
    title = "Select Elastic Beanstalk application to deploy to:"

    def list_resources(self, option_setting):
        return self.resource_queryer.list_beanstalk_applications()
