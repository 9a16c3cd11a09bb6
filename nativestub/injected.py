"""Members the runtime adds to JVM classes on top of their class files.

The values are emitted verbatim into the declaration header: field entries
are TypeScript types, method entries are TypeScript call signatures.
"""

from dataclasses import dataclass, field


@dataclass
class InjectedMembers:
    fields: dict[str, str] = field(default_factory=dict)
    methods: dict[str, str] = field(default_factory=dict)
    static_methods: dict[str, str] = field(default_factory=dict)


_VM_TARGET = (
    "(thread: JVMThread, descriptor: string, args: any[], "
    "cb?: (e?: java_lang_Throwable, rv?: any) => void) => void"
)

_INJECTED: dict[str, InjectedMembers] = {
    "java/lang/Object": InjectedMembers(
        fields={
            "ref": "number",
            "$monitor": "Monitor",
        },
        methods={
            "getClass": "(): ReferenceClassData<java_lang_Object>",
            "getMonitor": "(): Monitor",
        },
    ),
    "java/lang/Class": InjectedMembers(
        fields={"$cls": "ClassData"},
        methods={"$getClassData": "(): ClassData"},
    ),
    "java/lang/ClassLoader": InjectedMembers(
        fields={"$loader": "ClassLoader"},
    ),
    "java/lang/Thread": InjectedMembers(
        fields={"$thread": "JVMThread"},
    ),
    "java/lang/String": InjectedMembers(
        methods={"toString": "(): string"},
    ),
    "java/lang/invoke/MemberName": InjectedMembers(
        fields={"vmtarget": _VM_TARGET},
    ),
    "java/lang/invoke/MethodType": InjectedMembers(
        methods={"toString": "(): string"},
    ),
}

_BOXED = {
    "java/lang/Boolean": "number",
    "java/lang/Byte": "number",
    "java/lang/Character": "number",
    "java/lang/Short": "number",
    "java/lang/Integer": "number",
    "java/lang/Float": "number",
    "java/lang/Double": "number",
    "java/lang/Long": "Long",
}

for _name, _prim in _BOXED.items():
    _INJECTED[_name] = InjectedMembers(
        methods={"unbox": f"(): {_prim}"},
        static_methods={"box": f"(val: {_prim}): {_name.replace('/', '_')}"},
    )


def injected_members(internal_name: str) -> InjectedMembers:
    """Return the injected members of a class (empty for most classes)"""
    members = _INJECTED.get(internal_name)
    if members is None:
        return InjectedMembers()
    return InjectedMembers(
        fields=dict(members.fields),
        methods=dict(members.methods),
        static_methods=dict(members.static_methods),
    )
