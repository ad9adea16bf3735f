from dataclasses import dataclass
from app.config import Settings
from app.services.explainer import ExplainService
from app.services.repairer import RepairService
from app.services.validator import JsonschemaCompiler, JsonValidatorService

@dataclass
class Container:
    settings: Settings
    compiler: JsonschemaCompiler
    validator_service: JsonValidatorService
    repair_service: RepairService
    explain_service: ExplainService

def build_container(settings: Settings | None = None) -> Container:
    s = settings or Settings()

    compiler = JsonschemaCompiler(
        validate_formats=s.VALIDATE_FORMATS,
        cache_size=s.SCHEMA_CACHE_SIZE,
    )
    validator = JsonValidatorService(compiler)
    repair = RepairService(validator)
    explain = ExplainService()

    return Container(s, compiler, validator, repair, explain)
