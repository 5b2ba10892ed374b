"""Battle model decoder (descr_model_battle.txt); only skeletons are kept."""

from dataclasses import dataclass
from typing import Dict

from rtwroster.parser.fields import FieldReader
from rtwroster.parser.records import extract_records


@dataclass
class BattleModel:
    id: str
    skeleton: str


def parse_battle_models(text: str, mode=None) -> Dict[str, BattleModel]:
    models = {}
    for record in extract_records(text, ("type",)):
        reader = FieldReader(record)
        model_id = reader.require("type")
        skeleton = reader.require_split("skeleton")
        if not skeleton:
            raise reader.error(f"missing skeleton for {model_id}")
        models[model_id] = BattleModel(model_id, skeleton[0])
    return models
