"""Names shared with the generated CDK project."""

# CDK context parameter naming the serialized settings file
SETTINGS_PATH_CDK_CONTEXT_PARAMETER = "aws-deploy-tool-setting"

# Environment variable tagging deployments with the recipe that produced them
AWS_EXECUTION_ENV = "AWS_EXECUTION_ENV"

APP_SETTINGS_FILE_NAME = "appsettings.json"
RECIPE_SNAPSHOT_EXTENSION = ".recipe"
PROJECT_NAME_TOKEN = "__ProjectName__"
TEMPLATE_SUFFIX = ".j2"
