from __future__ import annotations

from typing import Dict, Iterable

from protoc_extractor.extractor.struct_collector import StructCollector
from protoc_extractor.models import MessageDescriptor
from protoc_extractor.naming import DEFAULT_NAMESPACE, in_namespace, split_qualified_name
from protoc_extractor.reflection.descriptors import ReflectedMessage


def extract_protos(
    descriptors: Iterable[ReflectedMessage],
    namespace: str = DEFAULT_NAMESPACE,
) -> Dict[str, MessageDescriptor]:
    """Build one MessageDescriptor per namespace root, keyed by short name.

    Roots that are reconstructed as a nested struct of another root are
    dropped from the result, since they are emitted inside that root's file.
    """
    results: Dict[str, MessageDescriptor] = {}
    for descriptor in descriptors:
        type_name = getattr(descriptor, "type_name", None)
        if not isinstance(type_name, str) or not in_namespace(type_name, namespace):
            continue
        _, name = split_qualified_name(type_name)
        results[name] = StructCollector(namespace).collect(descriptor)

    for message in list(results.values()):
        for struct in message.structs:
            results.pop(struct.name, None)

    return results
