"""
Native method stub generator

Given a class or package name, generates JavaScript or TypeScript templates
for the native methods of that class or package. TypeScript output also
gets a JVMTypes.d.ts declaration header covering every reachable type.

Usage:
    nativestub -cp build/classes java.lang.Thread
    nativestub -cp rt.jar:build/classes -d natives --ts java/lang
"""

import argparse
import logging
import os
import sys
import time
from typing import Optional

from .classpath import Classpath
from .config import GeneratorConfig
from .errors import NativeStubError
from .generator import NativeStubGenerator
from .log import configure_logging, describe_error

logger = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="nativestub",
        usage="%(prog)s [flags] class_or_package_name",
        description="Generate native method stubs for JVM classes",
        add_help=False,
    )
    parser.add_argument("class_name", nargs="?", help="Class or package, e.g. java.lang.Thread or java/lang")
    parser.add_argument("-cp", "--classpath",
                        help=f"A '{os.pathsep}' separated list of directories and JAR/ZIP archives to search for class files")
    parser.add_argument("-d", "--directory", help="Output directory")
    dialect = parser.add_mutually_exclusive_group()
    dialect.add_argument("--js", "--javascript", dest="dialect", action="store_const", const="js",
                         help="Generate JavaScript templates (default)")
    dialect.add_argument("--ts", "--typescript", dest="dialect", action="store_const", const="ts",
                         help="Generate TypeScript templates and the JVMTypes.d.ts header")
    parser.add_argument("--no-headers", dest="headers", action="store_false", default=None,
                        help="[TypeScript only] Do not generate JVMTypes.d.ts")
    parser.add_argument("--runtime-path", help="Path to the doppiojvm module (default: 'doppiojvm')")
    parser.add_argument("-f", "--force-headers", metavar=":[<classname>:]",
                        help="[TypeScript only] Colon-separated classes that always get header declarations")
    parser.add_argument("--config", help="TOML configuration file with a [nativestub] table")
    parser.add_argument("-v", "--verbose", action="store_true", help="Log every class processed")
    parser.add_argument("-?", "-h", "--help", dest="help", action="store_true", help="Print this help message")
    return parser


def build_config(args: argparse.Namespace) -> GeneratorConfig:
    config = GeneratorConfig.load(args.config) if args.config else GeneratorConfig()
    if args.classpath:
        config.classpath = args.classpath.split(os.pathsep)
    if args.directory:
        config.output_dir = args.directory
    if args.dialect:
        config.dialect = args.dialect
    if args.headers is not None:
        config.headers = args.headers
    if args.runtime_path:
        config.runtime_path = args.runtime_path
    if args.force_headers:
        config.force_headers = [name for name in args.force_headers.split(":") if name]
    if args.verbose:
        config.log_level = "DEBUG"
    return config.validate()


def main(argv: Optional[list[str]] = None) -> int:
    start_time = time.perf_counter()

    parser = build_parser()
    args = parser.parse_args(argv)
    if args.help or not args.class_name:
        parser.print_help()
        return 1

    configure_logging()
    try:
        config = build_config(args)
        configure_logging(config.log_level)
        with Classpath.from_paths(config.search_paths) as classpath:
            generator = NativeStubGenerator(config, classpath)
            generator.prepare_output_dir()
            files = generator.generate(args.class_name)
            for path in generator.write(files):
                print(f"Generated: {path}")
    except NativeStubError as e:
        logger.error(describe_error(e))
        return 1

    elapsed = time.perf_counter() - start_time
    print(f"Generation completed in {elapsed*1000:.2f} ms")
    return 0


if __name__ == "__main__":
    sys.exit(main())
