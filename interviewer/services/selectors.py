"""
Derived read views over a StoreState.

Selectors take ``(state, props)`` where props carries the current stage
and prompt. Plain selectors are cheap lookups. The ``make_*`` factories
return memoized selectors: each owns a SelectorCache keyed by the
revision counters and prop values its result depends on, so a result is
recomputed exactly when one of those inputs changes. Memoized
results are shared between callers, so they are tuples or read-only
mappings.

Usage:
    nodes_for_prompt = make_network_nodes_for_prompt()
    nodes = nodes_for_prompt(store.state, SelectorProps(stage=stage, prompt=prompt))
"""

import json
from collections import OrderedDict
from dataclasses import dataclass
from types import MappingProxyType
from typing import Any, Callable, Dict, Hashable, List, Mapping, Optional, Tuple

import structlog

from interviewer.core.exceptions import ProtocolSchemaError
from interviewer.domain.models.network import Edge, Network, Node
from interviewer.domain.models.protocol import (
    Codebook,
    InstalledProtocol,
    Prompt,
    Stage,
    Subject,
    Variable,
)
from interviewer.domain.models.session import Session, StoreState

log = structlog.get_logger(__name__)


@dataclass(frozen=True)
class SelectorProps:
    """The stage and prompt an interface is currently showing."""

    stage: Stage
    prompt: Optional[Prompt] = None


class SelectorCache:
    """Small LRU cache of selector results keyed by their inputs."""

    def __init__(self, maxsize: int = 1):
        self.maxsize = maxsize
        self._entries: "OrderedDict[Hashable, Any]" = OrderedDict()
        self.hits = 0
        self.misses = 0

    def get_or_compute(self, key: Hashable, compute: Callable[[], Any]) -> Any:
        if key in self._entries:
            self._entries.move_to_end(key)
            self.hits += 1
            return self._entries[key]

        self.misses += 1
        value = compute()
        self._entries[key] = value
        if len(self._entries) > self.maxsize:
            self._entries.popitem(last=False)
        return value

    def clear(self) -> None:
        self._entries.clear()


def _content_key(value: Dict[str, Any]) -> str:
    return json.dumps(value, sort_keys=True, default=str)


# =============================================================================
# Plain selectors
# =============================================================================


def get_active_session_id(state: StoreState, props: Optional[SelectorProps] = None) -> Optional[str]:
    return state.active_session_id


def get_active_session(state: StoreState, props: Optional[SelectorProps] = None) -> Optional[Session]:
    if state.active_session_id is None:
        return None
    return state.sessions.get(state.active_session_id)


def get_network(state: StoreState, props: Optional[SelectorProps] = None) -> Optional[Network]:
    session = get_active_session(state)
    return session.network if session else None


def get_network_nodes(state: StoreState, props: Optional[SelectorProps] = None) -> List[Node]:
    network = get_network(state)
    return list(network.nodes) if network else []


def get_network_edges(state: StoreState, props: Optional[SelectorProps] = None) -> List[Edge]:
    network = get_network(state)
    return list(network.edges) if network else []


def get_ego(state: StoreState, props: Optional[SelectorProps] = None) -> Dict[str, Any]:
    network = get_network(state)
    return dict(network.ego) if network else {}


def get_active_protocol(
    state: StoreState, props: Optional[SelectorProps] = None
) -> Optional[InstalledProtocol]:
    session = get_active_session(state)
    if session is None or session.protocol_uid is None:
        return None
    return state.installed_protocols.get(session.protocol_uid)


def get_protocol_codebook(state: StoreState, props: Optional[SelectorProps] = None) -> Optional[Codebook]:
    protocol = get_active_protocol(state)
    return protocol.codebook if protocol else None


def get_subject(stage: Stage, prompt: Optional[Prompt]) -> Optional[Subject]:
    """A prompt's own subject wins over its stage's."""
    if prompt is not None and prompt.subject is not None:
        return prompt.subject
    return stage.subject


def get_additional_attributes(stage: Stage, prompt: Optional[Prompt]) -> Dict[str, Any]:
    prompt_attributes = prompt.additional_attributes if prompt else {}
    return {**stage.additional_attributes, **prompt_attributes}


def _node_key(state: StoreState) -> Tuple[Optional[str], Optional[int]]:
    network = get_network(state)
    return state.active_session_id, network.node_revision if network else None


def _edge_key(state: StoreState) -> Tuple[Optional[str], Optional[int]]:
    network = get_network(state)
    return state.active_session_id, network.edge_revision if network else None


def _subject_type(props: SelectorProps) -> Optional[str]:
    subject = get_subject(props.stage, props.prompt)
    return subject.type if subject else None


# =============================================================================
# Selector factories
# =============================================================================


def make_get_ids() -> Callable[[StoreState, SelectorProps], Dict[str, Optional[str]]]:
    def selector(state: StoreState, props: SelectorProps) -> Dict[str, Optional[str]]:
        return {
            "stage_id": props.stage.id,
            "prompt_id": props.prompt.id if props.prompt else None,
        }

    return selector


def make_get_subject() -> Callable[[StoreState, SelectorProps], Optional[Subject]]:
    def selector(state: StoreState, props: SelectorProps) -> Optional[Subject]:
        return get_subject(props.stage, props.prompt)

    return selector


def make_get_additional_attributes() -> Callable[[StoreState, SelectorProps], Mapping[str, Any]]:
    cache = SelectorCache()

    def selector(state: StoreState, props: SelectorProps) -> Mapping[str, Any]:
        attributes = get_additional_attributes(props.stage, props.prompt)
        return cache.get_or_compute(
            _content_key(attributes), lambda: MappingProxyType(attributes)
        )

    selector.cache = cache
    return selector


def _protocol_key(state: StoreState) -> Tuple[Optional[str], Optional[str]]:
    protocol = get_active_protocol(state)
    session = get_active_session(state)
    if protocol is None or session is None:
        return None, None
    return session.protocol_uid, protocol.installation_date.isoformat()


def make_get_subject_type() -> Callable[[StoreState, SelectorProps], str]:
    """Subject node type for the prompt, checked against the codebook.

    Raises:
        ProtocolSchemaError: No subject is defined, or its type is not
            registered in the active protocol's codebook
    """
    cache = SelectorCache()

    def compute(codebook: Optional[Codebook], subject: Optional[Subject]) -> str:
        if subject is None or subject.type is None:
            raise ProtocolSchemaError('The "subject" property is not defined for this prompt')
        if codebook is None or subject.type not in codebook.node:
            raise ProtocolSchemaError(
                f'Node type "{subject.type}" is not defined in the registry'
            )
        return subject.type

    def selector(state: StoreState, props: SelectorProps) -> str:
        subject = get_subject(props.stage, props.prompt)
        key = (_protocol_key(state), subject.type if subject else None)
        return cache.get_or_compute(key, lambda: compute(get_protocol_codebook(state), subject))

    selector.cache = cache
    return selector


def make_get_node_variables() -> Callable[[StoreState, SelectorProps], Dict[str, Variable]]:
    get_subject_type = make_get_subject_type()

    def selector(state: StoreState, props: SelectorProps) -> Dict[str, Variable]:
        node_type = get_subject_type(state, props)
        codebook = get_protocol_codebook(state)
        return dict(codebook.node[node_type].variables)

    return selector


def make_get_prompt_variable() -> Callable[[StoreState, SelectorProps], Optional[str]]:
    def selector(state: StoreState, props: SelectorProps) -> Optional[str]:
        return props.prompt.variable if props.prompt else None

    return selector


def make_get_variable_options(
    include_other_variable: bool = False,
) -> Callable[[StoreState, SelectorProps], List[Any]]:
    """Options of the prompt's variable, plus an "other" entry when asked for."""
    get_node_variables = make_get_node_variables()
    get_prompt_variable = make_get_prompt_variable()

    def selector(state: StoreState, props: SelectorProps) -> List[Any]:
        variables = get_node_variables(state, props)
        variable = variables.get(get_prompt_variable(state, props) or "")
        options = list(variable.options or []) if variable else []

        prompt = props.prompt
        if include_other_variable and prompt is not None and prompt.other_variable:
            options.append(
                {
                    "label": prompt.other_variable_label,
                    "value": None,
                    "other_variable": prompt.other_variable,
                }
            )
        return options

    return selector


def make_network_nodes_for_type() -> Callable[[StoreState, SelectorProps], Tuple[Node, ...]]:
    """Nodes of the active network whose type is the prompt's subject type.

    Recomputed only when the active session, its node set, or the subject
    type changes.
    """
    cache = SelectorCache()

    def selector(state: StoreState, props: SelectorProps) -> Tuple[Node, ...]:
        subject_type = _subject_type(props)
        key = (_node_key(state), subject_type)
        return cache.get_or_compute(
            key, lambda: tuple(n for n in get_network_nodes(state) if n.type == subject_type)
        )

    selector.cache = cache
    return selector


def make_network_edges_for_type() -> Callable[[StoreState, SelectorProps], Tuple[Edge, ...]]:
    cache = SelectorCache()

    def selector(state: StoreState, props: SelectorProps) -> Tuple[Edge, ...]:
        subject_type = _subject_type(props)
        key = (_edge_key(state), subject_type)
        return cache.get_or_compute(
            key, lambda: tuple(e for e in get_network_edges(state) if e.type == subject_type)
        )

    selector.cache = cache
    return selector


def _matches_attributes(node: Node, attributes: Dict[str, Any]) -> bool:
    return all(
        key in node.attributes and node.attributes[key] == value
        for key, value in attributes.items()
    )


def make_network_nodes_for_prompt() -> Callable[[StoreState, SelectorProps], Tuple[Node, ...]]:
    """Nodes for the subject type that carry the prompt's additional attributes.

    A node belongs to the prompt when every additional attribute the
    stage/prompt declares is present on the node with an equal value.
    """
    nodes_for_type = make_network_nodes_for_type()
    cache = SelectorCache()

    def selector(state: StoreState, props: SelectorProps) -> Tuple[Node, ...]:
        nodes = nodes_for_type(state, props)
        attributes = get_additional_attributes(props.stage, props.prompt)
        key = (_node_key(state), _subject_type(props), _content_key(attributes))
        return cache.get_or_compute(
            key, lambda: tuple(n for n in nodes if _matches_attributes(n, attributes))
        )

    selector.cache = cache
    return selector


def make_network_nodes_for_other_prompts() -> Callable[[StoreState, SelectorProps], Tuple[Node, ...]]:
    """Nodes for the subject type that do not belong to the current prompt."""
    nodes_for_type = make_network_nodes_for_type()
    cache = SelectorCache()

    def selector(state: StoreState, props: SelectorProps) -> Tuple[Node, ...]:
        nodes = nodes_for_type(state, props)
        attributes = get_additional_attributes(props.stage, props.prompt)
        key = (_node_key(state), _subject_type(props), _content_key(attributes))
        return cache.get_or_compute(
            key, lambda: tuple(n for n in nodes if not _matches_attributes(n, attributes))
        )

    selector.cache = cache
    return selector


def make_rehydrate_form() -> Callable[[StoreState, SelectorProps], Optional[Any]]:
    """The protocol form named by the stage, or None."""

    def selector(state: StoreState, props: SelectorProps) -> Optional[Any]:
        form_name = props.stage.form
        protocol = get_active_protocol(state)
        if not form_name or protocol is None:
            return None
        return protocol.forms.get(form_name)

    return selector
