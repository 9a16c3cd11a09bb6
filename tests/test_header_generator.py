import io
import re
from pathlib import Path

from conftest import ACC_ABSTRACT, ACC_PUBLIC, CLASS, INTERFACE, write_classes
from nativestub.classpath import Classpath
from nativestub.header_generator import HeaderGraphBuilder, Phase
from nativestub.resolver import ClassResolver

DECLARATION = re.compile(r"^  export (?:class|interface) ([^\s<{]+)", re.MULTILINE)

THREAD_CLOSURE = {
    "JVMArray",
    "java_io_Serializable",
    "java_lang_CharSequence",
    "java_lang_Class",
    "java_lang_Object",
    "java_lang_Runnable",
    "java_lang_StackTraceElement",
    "java_lang_String",
    "java_lang_Thread",
    "java_lang_Throwable",
}


def generate(resolver, existing=None, seeds=(), **kwargs) -> tuple[str, HeaderGraphBuilder]:
    builder = HeaderGraphBuilder(resolver, **kwargs)
    out = io.StringIO()
    builder.generate(out, existing, seeds)
    return out.getvalue(), builder


def declared(text: str) -> list[str]:
    return DECLARATION.findall(text)


def block(text: str, name: str) -> str:
    start = re.search(rf"^  export (?:class|interface) {re.escape(name)}[ <{{]", text, re.MULTILINE).start()
    return text[start:text.index("\n  }\n", start)]


def test_thread_closure(resolver: ClassResolver) -> None:
    text, builder = generate(resolver, seeds=["Ljava/lang/Thread;"])

    names = declared(text)
    assert len(names) == len(set(names))
    assert set(names) == THREAD_CLOSURE
    assert builder.header_count == len(THREAD_CLOSURE) - 1
    assert builder.phase is Phase.FINALIZE
    assert text.startswith("// nativestub header format 1\n")
    assert text.endswith("}\nexport = JVMTypes;\n")
    assert "  export class JVMArray<T> extends java_lang_Object {" in text


def test_class_declaration(resolver: ClassResolver) -> None:
    text, _ = generate(resolver, seeds=["Ljava/lang/Thread;"])
    thread = block(text, "java_lang_Thread")
    cb = "cb?: (e?: java_lang_Throwable) => void"

    assert thread.startswith("  export class java_lang_Thread extends java_lang_Object implements java_lang_Runnable {\n")
    lines = thread.splitlines()
    assert lines[1] == "    public $thread: JVMThread;"
    assert lines[2] == '    public "java/lang/Thread/name": java_lang_String;'
    assert lines[3] == '    public "java/lang/Thread/priority": number;'
    assert lines[4] == '    public static "java/lang/Thread/MAX_PRIORITY": number;'
    assert f'    public static "sleep(J)V"(thread: JVMThread, args: [Long, any], {cb}): void;' in lines
    assert f'    public static "java.lang.Thread/sleep(J)V"(thread: JVMThread, args: [Long, any], {cb}): void;' in lines
    assert ('    public "isAlive()Z"(thread: JVMThread, args: {}[], '
            "cb?: (e?: java_lang_Throwable, rv?: number) => void): void;") in lines
    assert ('    public static "java.lang.Thread/dumpThreads([Ljava/lang/Thread;)[[Ljava/lang/StackTraceElement;"'
            "(thread: JVMThread, args: [JVMArray<java_lang_Thread>], "
            "cb?: (e?: java_lang_Throwable, rv?: JVMArray<JVMArray<java_lang_StackTraceElement>>) => void): void;") in lines

    # Constructors and private methods only get the fully-qualified signature
    assert not any('"<init>()V"' in line for line in lines)
    assert any('"java.lang.Thread/<init>()V"' in line for line in lines)
    assert not any('"setPriority0(I)V"' in line for line in lines)
    assert any('"java.lang.Thread/setPriority0(I)V"(thread: JVMThread, args: [number],' in line for line in lines)


def test_injected_members_come_first(resolver: ClassResolver) -> None:
    text, _ = generate(resolver)
    obj = block(text, "java_lang_Object").splitlines()
    assert obj[0] == "  export class java_lang_Object {"
    assert obj[1:5] == [
        "    public ref: number;",
        "    public $monitor: Monitor;",
        "    public getClass(): ReferenceClassData<java_lang_Object>;",
        "    public getMonitor(): Monitor;",
    ]


def test_interface_declarations(resolver: ClassResolver) -> None:
    text, _ = generate(resolver, seeds=["Ldemo/LoudGreeter;"])

    greeter = block(text, "demo_Greeter")
    assert greeter.splitlines()[0] == "  export interface demo_Greeter {"
    assert '    "greet()V"(thread: JVMThread, args: {}[], cb?: (e?: java_lang_Throwable) => void): void;' in greeter
    assert "create()" not in greeter
    assert "DEFAULT" not in greeter

    loud = block(text, "demo_LoudGreeter").splitlines()
    assert loud[0] == "  export interface demo_LoudGreeter extends demo_Greeter {"
    assert [line.split("(")[0] for line in loud[1:]] == ['    "shout', '    "greet']


def test_miranda_methods_on_classes(resolver: ClassResolver) -> None:
    text, _ = generate(resolver, seeds=["Ldemo/Impl;"])
    impl = block(text, "demo_Impl").splitlines()
    assert impl[0] == "  export class demo_Impl extends java_lang_Object implements demo_Greeter {"
    assert ('    public "compute(JD)J"(thread: JVMThread, args: [Long, any, number, any], '
            "cb?: (e?: java_lang_Throwable, rv?: Long) => void): void;") in impl
    assert impl[-1] == '    "greet()V"(thread: JVMThread, args: {}[], cb?: (e?: java_lang_Throwable) => void): void;'


def test_force_headers_and_escaping(resolver: ClassResolver) -> None:
    text, _ = generate(resolver, force_headers=["demo.Other_Name"])
    assert "  export class demo_Other__Name extends java_lang_Object {" in text
    assert '    public "demo/Other_Name/x": number;' in text


def test_replay_is_byte_identical(resolver: ClassResolver, classpath: Classpath) -> None:
    first, _ = generate(resolver, seeds=["Ljava/lang/Thread;"])
    second, _ = generate(ClassResolver(classpath), existing=first)
    assert second == first


def test_replay_is_cumulative(resolver: ClassResolver, classpath: Classpath) -> None:
    first, _ = generate(resolver, seeds=["Ldemo/Impl;", "Ldemo/Other_Name;"])
    second, _ = generate(ClassResolver(classpath), existing=first, seeds=["Ljava/lang/Thread;"])
    names = set(declared(second))
    assert {"demo_Impl", "demo_Greeter", "demo_Other__Name", "java_lang_Thread"} <= names
    assert set(declared(first)) <= names


def test_replay_skips_stale_and_foreign_entries(resolver: ClassResolver, classpath: Classpath) -> None:
    stale = (
        "// nativestub header format 1\n"
        "declare module JVMTypes {\n"
        "  export class JVMArray<T> extends java_lang_Object {\n"
        "  }\n"
        "  export class gone_Missing extends java_lang_Object {\n"
        "  }\n"
        "  export interface demo_Greeter {\n"
        "  }\n"
        "}\n"
    )
    text, _ = generate(resolver, existing=stale)
    assert "gone_Missing" not in text
    assert "demo_Greeter" in declared(text)

    foreign = stale.replace("// nativestub header format 1\n", "// generated elsewhere\n")
    text, _ = generate(ClassResolver(classpath), existing=foreign)
    assert "demo_Greeter" not in declared(text)


def test_deep_hierarchy_does_not_recurse(tmp_path: Path) -> None:
    depth = 3000
    classes = {
        "java/lang/Object": dict(super_name=None),
        "java/lang/Throwable": dict(),
    }
    for i in range(depth):
        classes[f"deep/C{i}"] = dict(super_name=f"deep/C{i - 1}" if i else "java/lang/Object")
    root = write_classes(tmp_path / "cp", classes)

    with Classpath.from_paths([str(root)]) as cp:
        text, builder = generate(ClassResolver(cp), seeds=[f"Ldeep/C{depth - 1};"])
    assert builder.header_count == depth + 2
    assert "  export class deep_C1 extends deep_C0 {" in text


def test_failed_replay_leaves_no_partial_classes(tmp_path: Path) -> None:
    root = write_classes(tmp_path / "cp", {
        "java/lang/Object": dict(super_name=None),
        "java/lang/Throwable": dict(),
        "p/Iface": dict(access=INTERFACE, methods=[("m", "()V", ACC_PUBLIC | ACC_ABSTRACT)]),
        "p/Base": dict(access=CLASS | ACC_ABSTRACT, interfaces=["p/Iface"]),
        "p/Stale": dict(super_name="p/Base", interfaces=["p/Gone"]),
        "p/User": dict(fields=[("base", "Lp/Base;", ACC_PUBLIC)]),
    })
    stale = (
        "// nativestub header format 1\n"
        "declare module JVMTypes {\n"
        "  export class p_Stale extends p_Base implements p_Gone {\n"
        "  }\n"
        "}\n"
    )
    with Classpath.from_paths([str(root)]) as cp:
        clean, _ = generate(ClassResolver(cp), seeds=["Lp/User;"])
        replayed, _ = generate(ClassResolver(cp), existing=stale, seeds=["Lp/User;"])

    assert replayed == clean
    assert '    "m()V"(thread: JVMThread, args: {}[], cb?: (e?: java_lang_Throwable) => void): void;' in block(clean, "p_Base")
