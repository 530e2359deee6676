# deploy_orchestration/cli.py
import argparse
import logging
import sys
from enum import IntEnum
from pathlib import Path
from typing import Optional, Tuple

from deploy_orchestration.config import DeploySettings, ToolOptions, load_settings
from deploy_orchestration.core import (
    DeploymentSessionManager,
    create_orchestrator,
    create_recipe_loader,
)
from deploy_orchestration.exceptions import is_expected_exception
from deploy_orchestration.logging_setup import setup_logging
from deploy_orchestration.prompts import ConsolePrompter, NonInteractivePrompter, Prompter

logger = logging.getLogger(__name__)


class CommandReturnCodes(IntEnum):
    SUCCESS = 0
    USER_ERROR = 1
    UNHANDLED_EXCEPTION = -1


def _setting_pair(text: str) -> Tuple[str, str]:
    key, sep, value = text.partition("=")
    if not sep or not key.strip():
        raise argparse.ArgumentTypeError(f"expected KEY=VALUE, got '{text}'")
    return key.strip(), value


def _tool_options(args, settings: DeploySettings) -> ToolOptions:
    return ToolOptions(
        settings=settings,
        project_path=Path(args.project_path),
        profile=getattr(args, "profile", None),
        region=getattr(args, "region", None),
        account_id=getattr(args, "account_id", None),
        stack_name=getattr(args, "stack_name", None),
        recipe_id=getattr(args, "recipe", None),
        output=Path(args.output) if getattr(args, "output", None) else None,
        save_cdk_project=getattr(args, "save_cdk_project", False),
        interactive=not getattr(args, "non_interactive", False),
        diagnostics=getattr(args, "diagnostics", False),
        setting_overrides=tuple(getattr(args, "setting", None) or ()),
    )


def _prompter(options: ToolOptions) -> Prompter:
    return ConsolePrompter() if options.interactive else NonInteractivePrompter()


def cmd_deploy(args, settings):
    options = _tool_options(args, settings)
    orchestrator = create_orchestrator(options, _prompter(options))
    return orchestrator.deploy(
        stack_name=options.stack_name,
        recipe_id=options.recipe_id,
        overrides=options.overrides_dict(),
        save_cdk_project=options.save_cdk_project,
    )


def cmd_generate_project(args, settings):
    options = _tool_options(args, settings)
    orchestrator = create_orchestrator(options, _prompter(options))
    path = orchestrator.generate_deployment_project(
        save_path=options.output,
        recipe_id=options.recipe_id,
        overrides=options.overrides_dict(),
    )
    if path is not None:
        print(f"The CDK deployment project is saved at: {path}")
    return CommandReturnCodes.SUCCESS


def cmd_list_deployments(args, settings):
    options = _tool_options(args, settings)
    orchestrator = create_orchestrator(options, NonInteractivePrompter())
    deployments = orchestrator.list_deployments()
    if not deployments:
        print("No deployments found for this project.")
    for application in deployments:
        print(f"{application.name} ({application.recipe_id})")
    return CommandReturnCodes.SUCCESS


def cmd_server_mode(args, settings):
    import uvicorn
    from deploy_orchestration.api import create_app

    def orchestrator_factory(project_path, profile, region):
        options = ToolOptions(settings=settings, project_path=project_path, profile=profile,
                              region=region, interactive=False)
        return create_orchestrator(options, NonInteractivePrompter())

    manager = DeploymentSessionManager(orchestrator_factory, create_recipe_loader(settings))
    uvicorn.run(
        create_app(manager),
        host=args.host,
        port=args.port or settings.server_port,
        log_level="debug" if args.diagnostics else "info",
    )
    return CommandReturnCodes.SUCCESS


def _add_common(parser, project=True):
    if project:
        parser.add_argument("--project-path", default=".", help="Project file or its directory")
    parser.add_argument("-d", "--diagnostics", action="store_true", help="Enable debug output")


def _add_resolution(parser):
    parser.add_argument("--recipe", default=None, help="Recipe id to use instead of asking")
    parser.add_argument("--setting", action="append", type=_setting_pair, metavar="KEY=VALUE",
                        help="Option setting override (repeatable)")
    parser.add_argument("--non-interactive", action="store_true", help="Accept every default")


def build_parser():
    p = argparse.ArgumentParser("deploy-tool")
    sp = p.add_subparsers(dest="cmd")

    # deploy
    s_deploy = sp.add_parser("deploy", help="Deploy the project to AWS")
    _add_common(s_deploy)
    _add_resolution(s_deploy)
    s_deploy.add_argument("--profile", default=None, help="AWS credentials profile")
    s_deploy.add_argument("--region", default=None, help="AWS region")
    s_deploy.add_argument("--account-id", default=None, help="AWS account id")
    s_deploy.add_argument("--stack-name", default=None, help="CloudFormation stack name")
    s_deploy.add_argument("--save-cdk-project", action="store_true",
                          help="Keep the generated CDK project next to the application")
    s_deploy.set_defaults(func=cmd_deploy)

    # deployment-project generate
    s_project = sp.add_parser("deployment-project", help="Manage CDK deployment projects")
    project_sp = s_project.add_subparsers(dest="project_cmd")
    s_generate = project_sp.add_parser("generate", help="Save a CDK deployment project to customize")
    _add_common(s_generate)
    _add_resolution(s_generate)
    s_generate.add_argument("-o", "--output", default=None,
                            help="Directory to save the project to (default: <ProjectDir>DeploymentProject)")
    s_generate.set_defaults(func=cmd_generate_project)

    # list-deployments
    s_list = sp.add_parser("list-deployments", help="List stacks deployed from this project")
    _add_common(s_list)
    s_list.set_defaults(func=cmd_list_deployments)

    # server-mode
    s_server = sp.add_parser("server-mode", help="Serve the HTTP API")
    _add_common(s_server, project=False)
    s_server.add_argument("--host", default="127.0.0.1")
    s_server.add_argument("--port", type=int, default=None)
    s_server.set_defaults(func=cmd_server_mode)

    return p


def main(argv=None, settings: Optional[DeploySettings] = None):
    parser = build_parser()
    args = parser.parse_args(argv)
    if not hasattr(args, "func"):
        parser.print_help()
        return CommandReturnCodes.USER_ERROR

    settings = settings or load_settings()
    setup_logging(logging.DEBUG if args.diagnostics else settings.log_level)

    try:
        return int(args.func(args, settings))
    except KeyboardInterrupt:
        logger.warning("Cancelled by user")
        return CommandReturnCodes.USER_ERROR
    except Exception as e:
        if is_expected_exception(e):
            print(e, file=sys.stderr)
            logger.debug("Details", exc_info=True)
            return CommandReturnCodes.USER_ERROR
        logger.exception("Unhandled exception. This is a bug, please report it with the output above.")
        return CommandReturnCodes.UNHANDLED_EXCEPTION


if __name__ == "__main__":
    raise SystemExit(main())
