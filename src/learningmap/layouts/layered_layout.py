# src/learningmap/layouts/layered_layout.py
"""
以 NetworkX 實作的分層 (Sugiyama 式) 佈局演算法。

流程：
1. 移除循環：以輸入順序進行 DFS，將回邊反轉。
2. 分層：以拓撲世代 (topological generations) 指派層級，父節點必在子節點之前。
3. 為跨越多層的邊插入虛擬節點。
4. 以重心法 (barycenter) 上下掃描，減少交叉數，並保留交叉最少的排序。
5. 座標指派：層與層之間、兄弟節點之間使用一致的間距，並依方向映射。

層內排序只取決於圖的結構 (不取決於節點尺寸)，因此在量測尺寸更新後重新佈局，
只會改變座標，階層與順序保持穩定。
"""

# 1. 標準庫導入
import logging
from collections.abc import Iterable

# 2. 第三方庫導入
import networkx as nx

# 3. 本專案導入
from learningmap.layouts.layout_request import LayoutRequest

DUMMY_PREFIX = "__dummy__"
DEFAULT_CROSSING_SWEEPS = 8
COORDINATE_PASSES = 4


def _build_graph(request: LayoutRequest) -> nx.DiGraph:
    """建立有向圖；忽略自迴圈與端點不存在的邊。"""
    graph = nx.DiGraph()
    for node in request.nodes:
        graph.add_node(node.id)
    for source, target in request.edges:
        if source == target or source not in graph or target not in graph:
            continue
        graph.add_edge(source, target)
    return graph


def remove_cycles(graph: nx.DiGraph) -> nx.DiGraph:
    """
    回傳無循環的副本：依節點輸入順序做 DFS，把指向目前路徑上節點的回邊反轉。

    對原本就是 DAG 的輸入不會反轉任何邊。
    """
    on_path: set[str] = set()
    finished: set[str] = set()
    back_edges: set[tuple[str, str]] = set()

    for start in graph.nodes:
        if start in finished:
            continue
        stack = [(start, iter(graph.successors(start)))]
        on_path.add(start)
        while stack:
            node, successors = stack[-1]
            advanced = False
            for successor in successors:
                if successor in on_path:
                    back_edges.add((node, successor))
                elif successor not in finished:
                    on_path.add(successor)
                    stack.append((successor, iter(graph.successors(successor))))
                    advanced = True
                    break
            if not advanced:
                stack.pop()
                on_path.discard(node)
                finished.add(node)

    if not back_edges:
        return graph.copy()

    logging.debug(f"分層佈局：反轉 {len(back_edges)} 條回邊以移除循環。")
    dag = nx.DiGraph()
    dag.add_nodes_from(graph.nodes)
    for source, target in graph.edges:
        if (source, target) in back_edges:
            dag.add_edge(target, source)
        else:
            dag.add_edge(source, target)
    return dag


def assign_layers(dag: nx.DiGraph) -> dict[str, int]:
    """以拓撲世代指派層級 (最長路徑分層)。"""
    layers: dict[str, int] = {}
    for layer_index, generation in enumerate(nx.topological_generations(dag)):
        for node in generation:
            layers[node] = layer_index
    return layers


def insert_dummy_nodes(dag: nx.DiGraph, layers: dict[str, int]) -> tuple[nx.DiGraph, dict[str, int]]:
    """把跨越多層的邊替換成經過虛擬節點的鏈，讓每條邊只連接相鄰層。"""
    augmented = nx.DiGraph()
    augmented.add_nodes_from(dag.nodes)
    augmented_layers = dict(layers)

    for edge_index, (source, target) in enumerate(dag.edges):
        span = layers[target] - layers[source]
        if span <= 1:
            augmented.add_edge(source, target)
            continue

        previous = source
        for step in range(1, span):
            dummy_id = f"{DUMMY_PREFIX}{edge_index}_{step}"
            augmented.add_node(dummy_id)
            augmented_layers[dummy_id] = layers[source] + step
            augmented.add_edge(previous, dummy_id)
            previous = dummy_id
        augmented.add_edge(previous, target)

    return augmented, augmented_layers


def _count_inversions(sequence: list[int]) -> int:
    """以 Fenwick tree 計算逆序數。"""
    if not sequence:
        return 0
    size = max(sequence) + 1
    tree = [0] * (size + 1)
    inversions = 0
    for seen, value in enumerate(sequence):
        index = value + 1
        not_greater = 0
        while index > 0:
            not_greater += tree[index]
            index -= index & -index
        inversions += seen - not_greater
        index = value + 1
        while index <= size:
            tree[index] += 1
            index += index & -index
    return inversions


def count_crossings(ordering: list[list[str]], graph: nx.DiGraph) -> int:
    """計算相鄰層之間的邊交叉總數。"""
    total = 0
    for upper, lower in zip(ordering, ordering[1:], strict=False):
        lower_position = {node: index for index, node in enumerate(lower)}
        edge_positions = []
        for upper_index, node in enumerate(upper):
            targets = sorted(lower_position[s] for s in graph.successors(node) if s in lower_position)
            edge_positions.extend((upper_index, target) for target in targets)
        total += _count_inversions([target for _, target in edge_positions])
    return total


def _barycenter_sort(layer: list[str], neighbours_of, reference: list[str]) -> list[str]:
    reference_position = {node: float(index) for index, node in enumerate(reference)}

    def sort_key(item: tuple[int, str]) -> tuple[float, int]:
        index, node = item
        positions = [reference_position[n] for n in neighbours_of(node) if n in reference_position]
        if not positions:
            return float(index), index
        return sum(positions) / len(positions), index

    return [node for _, node in sorted(enumerate(layer), key=sort_key)]


def minimize_crossings(
    graph: nx.DiGraph,
    layers: dict[str, int],
    node_order: Iterable[str],
    sweeps: int = DEFAULT_CROSSING_SWEEPS,
) -> list[list[str]]:
    """
    以重心法上下掃描來減少交叉數。

    初始排序沿用節點的輸入順序，確保結果是確定性的；
    每次掃描後保留交叉數最少的排序。
    """
    layer_count = max(layers.values()) + 1 if layers else 0
    ordering: list[list[str]] = [[] for _ in range(layer_count)]
    seen: set[str] = set()
    for node in node_order:
        if node in layers and node not in seen:
            ordering[layers[node]].append(node)
            seen.add(node)
    for node in sorted(set(layers) - seen):
        ordering[layers[node]].append(node)

    best_ordering = [list(layer) for layer in ordering]
    best_crossings = count_crossings(ordering, graph)

    for _ in range(sweeps):
        if best_crossings == 0:
            break
        for layer_index in range(1, layer_count):
            ordering[layer_index] = _barycenter_sort(
                ordering[layer_index], graph.predecessors, ordering[layer_index - 1]
            )
        for layer_index in range(layer_count - 2, -1, -1):
            ordering[layer_index] = _barycenter_sort(
                ordering[layer_index], graph.successors, ordering[layer_index + 1]
            )

        crossings = count_crossings(ordering, graph)
        if crossings < best_crossings:
            best_crossings = crossings
            best_ordering = [list(layer) for layer in ordering]
        else:
            break

    logging.debug(f"分層佈局：{layer_count} 層，交叉數 {best_crossings}。")
    return best_ordering


def _place_layer(order: list[str], desired: dict[str, float], extent: dict[str, float], gap: float) -> dict[str, float]:
    """
    在保持順序與最小間距的前提下，把一層節點放到期望的中心位置附近。

    先由左至右推開重疊，再整體平移使平均偏移量為零。
    """
    centers: dict[str, float] = {}
    previous = None
    for node in order:
        center = desired[node]
        if previous is not None:
            minimum = centers[previous] + extent[previous] / 2 + gap + extent[node] / 2
            center = max(center, minimum)
        centers[node] = center
        previous = node

    shift = sum(centers[node] - desired[node] for node in order) / len(order)
    return {node: center - shift for node, center in centers.items()}


def assign_coordinates(
    ordering: list[list[str]],
    graph: nx.DiGraph,
    request: LayoutRequest,
) -> dict[str, tuple[float, float]]:
    """將排序後的各層轉換為節點左上角座標。"""
    sizes = {node.id: (node.width, node.height) for node in request.nodes}

    def primary_extent(node: str) -> float:
        if node not in sizes:
            return 0.0
        width, height = sizes[node]
        return width if request.is_horizontal else height

    def secondary_extent(node: str) -> float:
        if node not in sizes:
            return 0.0
        width, height = sizes[node]
        return height if request.is_horizontal else width

    secondary = {node: secondary_extent(node) for layer in ordering for node in layer}

    centers: dict[str, float] = {}
    for layer in ordering:
        cursor = 0.0
        for node in layer:
            centers[node] = cursor + secondary[node] / 2
            cursor += secondary[node] + request.node_spacing

    for _ in range(COORDINATE_PASSES):
        for layer_index in range(1, len(ordering)):
            layer = ordering[layer_index]
            desired = {node: _neighbour_mean(graph.predecessors(node), centers, centers[node]) for node in layer}
            centers.update(_place_layer(layer, desired, secondary, request.node_spacing))
        for layer_index in range(len(ordering) - 2, -1, -1):
            layer = ordering[layer_index]
            desired = {node: _neighbour_mean(graph.successors(node), centers, centers[node]) for node in layer}
            centers.update(_place_layer(layer, desired, secondary, request.node_spacing))

    layer_thickness = [max((primary_extent(node) for node in layer), default=0.0) for layer in ordering]
    layer_offsets = []
    offset = 0.0
    for thickness in layer_thickness:
        layer_offsets.append(offset)
        offset += thickness + request.layer_spacing
    total_primary = offset - request.layer_spacing if ordering else 0.0

    min_secondary = min((centers[node] - secondary[node] / 2 for node in sizes), default=0.0)

    positions: dict[str, tuple[float, float]] = {}
    for layer_index, layer in enumerate(ordering):
        for node in layer:
            if node not in sizes:
                continue
            width, height = sizes[node]
            primary_center = layer_offsets[layer_index] + layer_thickness[layer_index] / 2
            if request.direction in ("UP", "LEFT"):
                primary_center = total_primary - primary_center
            secondary_center = centers[node] - min_secondary

            if request.is_horizontal:
                center_x, center_y = primary_center, secondary_center
            else:
                center_x, center_y = secondary_center, primary_center
            positions[node] = (center_x - width / 2, center_y - height / 2)

    return positions


def _neighbour_mean(neighbours: Iterable[str], centers: dict[str, float], fallback: float) -> float:
    values = [centers[n] for n in neighbours if n in centers]
    return sum(values) / len(values) if values else fallback


class LayeredLayout:
    """
    預設的佈局演算法，可直接作為 LayoutEngine 的 algorithm 使用。
    """

    def __init__(self, crossing_sweeps: int = DEFAULT_CROSSING_SWEEPS):
        self.crossing_sweeps = crossing_sweeps

    def __call__(self, request: LayoutRequest) -> dict[str, tuple[float, float]]:
        if not request.nodes:
            return {}

        graph = _build_graph(request)
        dag = remove_cycles(graph)
        layers = assign_layers(dag)
        augmented, augmented_layers = insert_dummy_nodes(dag, layers)
        ordering = minimize_crossings(
            augmented,
            augmented_layers,
            (node.id for node in request.nodes),
            sweeps=self.crossing_sweeps,
        )
        return assign_coordinates(ordering, augmented, request)
