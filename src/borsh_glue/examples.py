"""
Example Rust sources for demos and end-to-end tests.

Builds a small crate-like tree covering the supported surface: aliases,
skipped fields, tuple structs, maps, nested custom types and an enum with
unit, tuple and struct variants.
"""
import os
from typing import Dict


STATE_SOURCE = '''\
use borsh::{BorshDeserialize, BorshSerialize};

type UnixTimestamp = i64;
pub type Amount = u64;
type StatePool = Option<Vec<OtherState>>;

#[derive(BorshSchema, BorshSerialize, BorshDeserialize, Clone, Debug)]
pub struct TestStruct {
    field_a: u64,
    field_b: u8,
    #[alias(Option<Vec<OtherState>>)]
    field_c: StatePool,
    #[schema_skip]
    #[borsh_skip]
    skipped_field: Option<u32>,
}

#[derive(BorshSerialize, BorshDeserialize, Clone, Copy, Debug)]
#[cfg_attr(test, derive(BorshSchema))]
pub struct OtherState {
    #[alias(u64)]
    amount: Amount,
    #[alias(i64)]
    timestamp: UnixTimestamp,
}

#[derive(BorshSchema, BorshSerialize, BorshDeserialize, Clone, Debug)]
pub struct TupleStruct(u8, pub i32, pub OtherState);
'''

ENUM_SOURCE = '''\
use solana_program::pubkey::Pubkey;
use std::collections::BTreeMap;

/// Not exported: no marker.
#[derive(Clone, Debug)]
struct Internal {
    value: u8,
}

#[derive(BorshSchema, BorshSerialize, BorshDeserialize)]
pub struct RandomStruct {
    field_a: String,
    field_b: Option<[u8; 2]>,
}

#[derive(BorshSchema, BorshSerialize, BorshDeserialize)]
pub enum TestEnum {
    VariantA,
    VariantB,
    VariantC(u64),
    VariantD(Option<Pubkey>),
    VariantE(Option<u8>),
    VariantF(RandomStruct),
    VariantG {
        hello: Vec<u8>,
        bello: [Pubkey; 3],
        yello: u16,
        zello: bool,
    },
}

#[derive(BorshSchema)]
pub struct BTreeWrapper {
    map_0: BTreeMap<[u8; 32], Pubkey>,
    map_1: BTreeMap<String, Option<u32>>,
    map_2: BTreeMap<u16, String>,
}
'''

EXAMPLE_TREE: Dict[str, str] = {
    os.path.join("src", "state.rs"): STATE_SOURCE,
    os.path.join("src", "instruction", "mod.rs"): ENUM_SOURCE,
    os.path.join("src", "lib.rs"): "pub mod instruction;\npub mod state;\n",
}


def write_example_tree(root: str) -> str:
    """
    Write the example sources below root.

    Returns:
        root, for chaining
    """
    for relative_path, content in EXAMPLE_TREE.items():
        path = os.path.join(root, relative_path)
        os.makedirs(os.path.dirname(path), exist_ok=True)
        with open(path, "w", encoding="utf-8") as f:
            f.write(content)
    return root
