# cli.py
# Command-line entry point: `applicant-verify <command>`. Every command prints JSON.

import json

import click

from applicant_verify.config import config, get_config
from applicant_verify.exceptions import UnsupportedFormat
from applicant_verify.logging_config import configure_logging
from applicant_verify.models import ProfileFacts
from applicant_verify.sample_generator import OUTPUT_DIR, CertificateGenerator, generate_seed_files
from applicant_verify.services import certificate_service, id_document_service, language_service
from applicant_verify.services.traffic_light_service import score_profile, status_details


def _echo_json(data):
    click.echo(json.dumps(data, indent=2, ensure_ascii=False))


@click.group()
@click.option('--config', 'config_name', type=click.Choice(sorted(config)), default=None,
              help='Configuration to use (defaults to $APPLICANT_VERIFY_CONFIG or "default").')
@click.pass_context
def cli(ctx, config_name):
    """ID extraction, certificate verification and Traffic Light scoring."""
    try:
        settings = get_config(config_name)
    except ValueError as e:
        raise click.ClickException(str(e))
    configure_logging(settings)
    ctx.obj = settings


@cli.command('id-document')
@click.argument('path', type=click.Path(exists=True, dir_okay=False))
@click.option('--delete-after', type=float, default=None,
              help='Delete the image this many seconds after extraction.')
@click.pass_obj
def id_document_command(settings, path, delete_after):
    """Extract the fields of a national ID card photo (JPG)."""
    try:
        result = id_document_service.process_id_document(path, settings=settings)
    except UnsupportedFormat as e:
        raise click.ClickException(str(e))

    output = result.to_dict()
    output['requires_manual_review'] = id_document_service.requires_manual_review(result, settings)
    _echo_json(output)

    if delete_after is not None:
        # The process would exit before a daemon timer fires, so wait for it here.
        id_document_service.schedule_secure_delete(path, delete_after, settings).join()


@cli.command('certificates')
@click.argument('paths', nargs=-1, required=True, type=click.Path(exists=True, dir_okay=False))
@click.option('--workers', type=int, default=None, help='Number of certificates processed in parallel.')
@click.option('--first-name', default=None, help="Applicant's first name, for holder-name matching.")
@click.option('--surname', default=None, help="Applicant's surname, for holder-name matching.")
@click.pass_obj
def certificates_command(settings, paths, workers, first_name, surname):
    """Parse and score one or more certificates (JPG, PNG or PDF)."""
    applicant = (first_name, surname) if first_name and surname else None
    results = certificate_service.process_certificate_batch(
        list(paths), settings=settings, max_workers=workers, applicant=applicant,
    )
    output = []
    for item in results:
        entry = item.to_dict()
        if item.record and language_service.is_german_certificate(item.record):
            verification = language_service.verify_german_certificate(item.record)
            entry['german_verification'] = {
                'is_valid': verification.is_valid,
                'level': verification.level,
                'institution': verification.institution,
                'reason': verification.reason,
            }
        output.append(entry)
    _echo_json(output)


@cli.command('score')
@click.argument('profile', type=click.File('r'))
def score_command(profile):
    """Compute the Traffic Light score for a profile JSON file ('-' for stdin)."""
    try:
        data = json.load(profile)
    except json.JSONDecodeError as e:
        raise click.ClickException(f"Profile is not valid JSON: {e}")
    result = score_profile(ProfileFacts.from_dict(data))
    output = result.to_dict()
    output['status_details'] = status_details(result.status)
    _echo_json(output)


@cli.command('sample-certificates')
@click.option('--output-dir', type=click.Path(file_okay=False), default=OUTPUT_DIR, show_default=True)
@click.option('--random', 'random_count', type=int, default=0, help='Also generate N random certificates.')
@click.option('--seed', type=int, default=None, help='Seed for the random certificates.')
def sample_certificates_command(output_dir, random_count, seed):
    """Generate sample certificate PDFs for manual testing."""
    written = list(generate_seed_files(output_dir))
    if random_count:
        written.extend(CertificateGenerator(output_dir, seed=seed).generate_random(random_count))
    _echo_json({'generated': written})


if __name__ == '__main__':
    cli()
