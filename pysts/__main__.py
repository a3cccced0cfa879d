#!/usr/bin/env python

from pysts import configs

from pysts.errors import ModelError
from pysts.frontend import sts_from_yml
from pysts.task import Task, Result
from pysts.verdict import Verdict

from pysts import log

import os
import sys

import yaml

from pysmt.environment import reset_env


def main(args):
    """ verifies every model file, returns the results in order """
    log.init_printer(args)

    if args.list_configs:
        for name in configs.list_configs():
            print(name)
        return []

    config = configs.load_config(args.config)
    results = []

    for model in args.model:
        model_name = os.path.splitext(os.path.basename(model))[0]
        log.printer.log_task(model_name, [args.config])

        # symbols are global to a pysmt environment, every model declares its own
        reset_env()

        # read and check the model
        log.printer.log_status('parsing')
        try:
            with open(model, 'r') as file:
                model_yml = yaml.safe_load(file)
            sts = sts_from_yml(model_yml, model_name)
        except (OSError, yaml.YAMLError, ModelError) as x:
            log.printer.log_result(model_name, 'MODEL_ERROR', ' (', str(x), ')')
            result = Result(Verdict.ERROR)
            result.reason = str(x)
            results.append(result)
            continue

        # prepare output directory
        output_dir = None
        if args.output_directory:
            output_dir = os.path.join(args.output_directory, sts.name)
            os.makedirs(output_dir, exist_ok=True)

        task = Task.from_yml(model_yml, args, output_dir, model_name)
        result = Result()

        log.printer.log_status('running CEGAR')
        try:
            config.get_algorithm(sts, task, result).run()
        except KeyboardInterrupt:
            result.verdict = Verdict.TIMEOUT
            result.reason = 'aborted by user'
            log.printer.log_result(sts.name, str(result))
            results.append(result)
            break

        if result.verdict == Verdict.UNSAFE:
            log.printer.log_result(sts.name, str(result), '\n', str(result.witness))
        else:
            log.printer.log_result(sts.name, str(result))
        results.append(result)

    return results


from pysts.params import parser


def cli(argv=None):
    args = parser.parse_args(argv)
    results = main(args)
    sys.exit(0 if all(r.verdict.is_conclusive() for r in results) else 1)


if __name__ == '__main__':
    cli()
