"""
Package Registry - the static table of known npm packages.

Each record carries the version range to report, whether the package is a
dev dependency, a human description, and the regular-expression fragments
whose presence in generated source reveals that the package is in use.

The registry is immutable once built; detectors receive it at construction.
"""

import json
import re
from pathlib import Path
from types import MappingProxyType
from typing import Dict, Iterable, Iterator, Mapping, Optional, Tuple, Union

from uigen.errors import RegistryError
from uigen.packages.models import PackageRecord


# =============================================================================
# BUILT-IN PACKAGE TABLE
# =============================================================================

DEFAULT_PACKAGES: Tuple[PackageRecord, ...] = (
    # UI Libraries
    PackageRecord(
        "framer-motion", "^10.16.4", "Animation library for React",
        patterns=("motion\\.", "AnimatePresence", "useAnimation", "variants"),
    ),
    PackageRecord(
        "react-spring", "^9.7.3", "Spring-physics based animations",
        patterns=("useSpring", "animated\\.", "useTransition"),
    ),
    PackageRecord(
        "recharts", "^2.8.0", "Composable charting library",
        patterns=("LineChart", "BarChart", "PieChart", "XAxis", "YAxis", "ResponsiveContainer"),
    ),
    PackageRecord(
        "react-hook-form", "^7.47.0", "Performant forms with easy validation",
        patterns=("useForm", "Controller", "register", "handleSubmit"),
    ),
    PackageRecord(
        "react-query", "^3.39.3", "Data fetching and caching library",
        patterns=("useQuery", "useMutation", "QueryClient"),
    ),
    PackageRecord(
        "@tanstack/react-query", "^5.0.0", "Powerful data synchronization for React",
        patterns=("useQuery", "useMutation", "QueryClient"),
    ),
    PackageRecord(
        "react-router-dom", "^6.17.0", "Declarative routing for React",
        patterns=("BrowserRouter", "Route", "Link", "useNavigate", "useParams"),
    ),
    PackageRecord(
        "axios", "^1.5.0", "Promise based HTTP client",
        patterns=("axios\\.", "axios\\("),
    ),
    PackageRecord(
        "date-fns", "^2.30.0", "Modern JavaScript date utility library",
        patterns=("format\\(", "parseISO", "addDays", "subDays"),
    ),
    PackageRecord(
        "lodash", "^4.17.21", "Utility library",
        patterns=("_\\.", "debounce", "throttle", "cloneDeep"),
    ),
    PackageRecord(
        "react-dnd", "^16.0.1", "Drag and drop for React",
        patterns=("useDrag", "useDrop", "DndProvider"),
    ),
    PackageRecord(
        "react-beautiful-dnd", "^13.1.1", "Beautiful drag and drop",
        patterns=("DragDropContext", "Droppable", "Draggable"),
    ),
    PackageRecord(
        "react-select", "^5.7.7", "Select component for React",
        patterns=("Select from ['\"]react-select",),
    ),
    PackageRecord(
        "react-datepicker", "^4.21.0", "Date picker component",
        patterns=("DatePicker", "react-datepicker"),
    ),
    PackageRecord(
        "react-modal", "^3.16.1", "Accessible modal dialog",
        patterns=("Modal from ['\"]react-modal",),
    ),
    PackageRecord(
        "react-tooltip", "^5.21.4", "Tooltip component",
        patterns=("Tooltip", "react-tooltip"),
    ),
    PackageRecord(
        "react-hot-toast", "^2.4.1", "Toast notifications",
        patterns=("toast\\.", "Toaster"),
    ),
    PackageRecord(
        "sonner", "^1.0.3", "Opinionated toast component",
        patterns=("toast from ['\"]sonner", "Toaster from ['\"]sonner"),
    ),

    # Blockchain/Web3
    PackageRecord(
        "ethers", "^6.8.0", "Ethereum library",
        patterns=("ethers\\.", "Contract", "Provider", "Signer"),
    ),
    PackageRecord(
        "wagmi", "^1.4.0", "React hooks for Ethereum",
        patterns=("useAccount", "useConnect", "useContract", "useBalance"),
    ),
    PackageRecord(
        "viem", "^1.16.0", "TypeScript interface for Ethereum",
        patterns=("createPublicClient", "createWalletClient", "parseEther"),
    ),
    PackageRecord(
        "@rainbow-me/rainbowkit", "^1.3.0", "Wallet connection UI",
        patterns=("ConnectButton", "RainbowKitProvider"),
    ),
    PackageRecord(
        "web3", "^4.2.0", "Ethereum JavaScript API",
        patterns=("Web3\\(", "web3\\."),
    ),

    # State Management
    PackageRecord(
        "zustand", "^4.4.4", "Small, fast state management",
        patterns=("create from ['\"]zustand", "useStore"),
    ),
    PackageRecord(
        "redux", "^4.2.1", "Predictable state container",
        patterns=("createStore", "useSelector", "useDispatch"),
    ),
    PackageRecord(
        "@reduxjs/toolkit", "^1.9.7", "Official Redux toolkit",
        patterns=("configureStore", "createSlice", "createAsyncThunk"),
    ),
    PackageRecord(
        "jotai", "^2.4.3", "Primitive and flexible state management",
        patterns=("atom\\(", "useAtom", "useAtomValue"),
    ),

    # Development Tools
    PackageRecord(
        "@types/react", "^18.2.0", "TypeScript definitions for React", dev=True,
        patterns=("React\\.FC", "React\\.Component", "JSX\\.Element"),
    ),
    PackageRecord(
        "@types/node", "^20.8.0", "TypeScript definitions for Node.js", dev=True,
        patterns=("NodeJS\\.", "Buffer", "process\\."),
    ),
    PackageRecord(
        "typescript", "^5.2.0", "TypeScript language", dev=True,
        patterns=("interface ", "type ", ": string", ": number"),
    ),

    # AI and ML Libraries
    PackageRecord(
        "openai", "^4.0.0", "OpenAI API client",
        patterns=("OpenAI", "openai\\."),
    ),
    PackageRecord(
        "@ai-sdk/openai", "^1.0.0", "AI SDK for OpenAI",
        patterns=("openai from ['\"]@ai-sdk/openai",),
    ),
    PackageRecord(
        "ai", "^2.0.0", "AI utilities for JavaScript",
        patterns=("generateText", "streamText", "generateImage"),
    ),
    PackageRecord(
        "langchain", "^0.0.75", "LangChain for JavaScript",
        patterns=("LLMChain", "PromptTemplate", "ChatOpenAI"),
    ),
    PackageRecord(
        "@huggingface/inference", "^2.6.1", "Hugging Face Inference API",
        patterns=("HfInference", "huggingface"),
    ),
    PackageRecord(
        "transformers.js", "^2.6.0", "Run Transformers in the browser",
        patterns=("pipeline", "AutoTokenizer", "AutoModel"),
    ),

    # Preview runtime (what generated shadcn/ui components import constantly)
    PackageRecord(
        "react", "^18.2.0", "Library for building user interfaces",
        patterns=("React\\.", "useState\\(", "useEffect\\("),
    ),
    PackageRecord(
        "react-dom", "^18.2.0", "DOM renderer for React",
        patterns=("ReactDOM", "createRoot\\(", "createPortal\\("),
    ),
    PackageRecord(
        "lucide-react", "^0.292.0", "Icon components for React",
        patterns=("lucide-react",),
    ),
    PackageRecord(
        "clsx", "^2.0.0", "Utility for constructing className strings",
        patterns=("clsx\\(",),
    ),
    PackageRecord(
        "tailwind-merge", "^2.0.0", "Merge Tailwind CSS classes without conflicts",
        patterns=("twMerge\\(",),
    ),
    PackageRecord(
        "class-variance-authority", "^0.7.0", "Variant-driven className builder",
        patterns=("cva\\(",),
    ),
)


# =============================================================================
# REGISTRY
# =============================================================================

class PackageRegistry:
    """
    Read-only, ordered lookup table of PackageRecords keyed by package name.

    Iteration follows insertion order, which is the order the pattern pass
    of the detector reports matches in.
    """

    def __init__(self, records: Iterable[PackageRecord]):
        by_name: Dict[str, PackageRecord] = {}
        for record in records:
            if record.name in by_name:
                raise RegistryError(f"Duplicate package in registry: {record.name}")
            for pattern in record.patterns:
                try:
                    re.compile(pattern)
                except re.error as e:
                    raise RegistryError(
                        f"Invalid detection pattern {pattern!r} for {record.name}: {e}"
                    ) from e
            by_name[record.name] = record

        self._records: Tuple[PackageRecord, ...] = tuple(by_name.values())
        self._by_name: Mapping[str, PackageRecord] = MappingProxyType(by_name)

    def __len__(self) -> int:
        return len(self._records)

    def __iter__(self) -> Iterator[PackageRecord]:
        return iter(self._records)

    def __contains__(self, name: object) -> bool:
        return name in self._by_name

    def get(self, name: str) -> Optional[PackageRecord]:
        """Exact, case-sensitive lookup by base package name."""
        return self._by_name.get(name)

    @property
    def names(self) -> Tuple[str, ...]:
        return tuple(r.name for r in self._records)

    def merged(self, other: Iterable[PackageRecord]) -> "PackageRegistry":
        """Return a new registry where records from `other` replace or extend ours."""
        combined: Dict[str, PackageRecord] = dict(self._by_name)
        for record in other:
            combined[record.name] = record
        return PackageRegistry(combined.values())

    def to_dict(self) -> Dict[str, Dict]:
        """Serialize to the registry JSON shape."""
        return {r.name: r.to_dict() for r in self._records}

    @classmethod
    def from_dict(cls, data: Dict[str, Dict]) -> "PackageRegistry":
        """Build a registry from the `{name: {version, dev, description, patterns}}` shape."""
        if not isinstance(data, dict):
            raise RegistryError("Registry data must be an object keyed by package name")
        records = []
        for name, entry in data.items():
            if not isinstance(entry, dict):
                raise RegistryError(f"Registry entry for {name} must be an object")
            records.append(PackageRecord.from_dict(name, entry))
        return cls(records)

    @classmethod
    def from_json(cls, path: Union[str, Path]) -> "PackageRegistry":
        """Load a registry from a JSON file."""
        try:
            with open(path, "r", encoding="utf-8") as f:
                data = json.load(f)
        except json.JSONDecodeError as e:
            raise RegistryError(f"Registry file {path} is not valid JSON: {e}") from e
        except OSError as e:
            raise RegistryError(f"Cannot read registry file {path}: {e}") from e
        return cls.from_dict(data)


DEFAULT_REGISTRY = PackageRegistry(DEFAULT_PACKAGES)


def load_registry(path: Optional[Union[str, Path]] = None) -> PackageRegistry:
    """
    Build the registry the application should use.

    Args:
        path: Optional JSON registry merged over the built-in table. When
            omitted, UIGEN_REGISTRY_PATH from the config is used.

    Returns:
        The built-in registry, or the merged one
    """
    if path is None:
        from uigen.config import get_config
        path = get_config().registry_path
    if not path:
        return DEFAULT_REGISTRY
    return DEFAULT_REGISTRY.merged(PackageRegistry.from_json(path))
